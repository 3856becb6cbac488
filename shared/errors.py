"""
Shared error handling for the Convert Gateway.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class GatewayException(Exception):
    """Base exception for gateway services."""

    status_code: int = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class InvalidExternalToken(GatewayException):
    """The identity provider rejected the external token, or could not be reached."""

    status_code = 401

    def __init__(self, message: str = "Invalid Google token", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_EXTERNAL_TOKEN", message, details)


class Unauthenticated(GatewayException):
    """No credential was presented."""

    status_code = 401

    def __init__(self, message: str = "Authentication required", details: Optional[Dict[str, Any]] = None):
        super().__init__("UNAUTHENTICATED", message, details)


class Forbidden(GatewayException):
    """A credential was presented but is invalid or expired."""

    status_code = 403

    def __init__(self, message: str = "Invalid or expired session token", details: Optional[Dict[str, Any]] = None):
        super().__init__("FORBIDDEN", message, details)


class TokenMissing(GatewayException):
    """No session token supplied to the codec."""

    status_code = 401

    def __init__(self, message: str = "Session token missing", details: Optional[Dict[str, Any]] = None):
        super().__init__("TOKEN_MISSING", message, details)


class TokenInvalid(GatewayException):
    """Session token failed signature or structure checks."""

    status_code = 403

    def __init__(self, message: str = "Session token invalid", details: Optional[Dict[str, Any]] = None):
        super().__init__("TOKEN_INVALID", message, details)


class TokenExpired(TokenInvalid):
    """Session token is past its expiry."""

    def __init__(self, message: str = "Session token expired", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.code = "TOKEN_EXPIRED"


class ValidationError(GatewayException):
    """Validation-related errors."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class NoFilePresent(ValidationError):
    """The expected upload field was absent."""

    def __init__(self, field: str = "file", details: Optional[Dict[str, Any]] = None):
        super().__init__(f"No file present in field '{field}'", details)
        self.code = "NO_FILE_PRESENT"


class PayloadTooLarge(GatewayException):
    """Upload exceeded the size ceiling."""

    status_code = 413

    def __init__(self, limit: int, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            "PAYLOAD_TOO_LARGE",
            f"Upload exceeds the {limit} byte limit",
            {"limit_bytes": limit, **(details or {})}
        )


class InternalError(GatewayException):
    """Unexpected failure; never carries internal detail to the caller."""

    status_code = 500

    def __init__(self, message: str = "Internal error"):
        super().__init__("INTERNAL_ERROR", message)


class ConfigurationError(GatewayException):
    """Service cannot start with the supplied configuration."""

    status_code = 500

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
