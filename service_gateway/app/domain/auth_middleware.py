"""
Authentication guard for protected Gateway routes.
"""

from fastapi import Request
from typing import Optional

from shared.logging import get_logger, set_user_context
from shared.errors import Forbidden, TokenExpired, TokenInvalid, Unauthenticated
from shared.metrics import MetricsCollector

from ..auth.session_tokens import SessionTokenCodec
from ..models import Identity


class AuthGuard:
    """Resolves the caller's identity from the session bearer token."""

    def __init__(self, codec: SessionTokenCodec, metrics: Optional[MetricsCollector] = None):
        self.codec = codec
        self.metrics = metrics
        self.logger = get_logger("gateway.auth_guard")

    async def __call__(self, request: Request) -> Identity:
        """FastAPI dependency entrypoint."""
        return await self.authenticate_request(request)

    async def authenticate_request(self, request: Request) -> Identity:
        """Authenticate incoming request with its session token."""
        token = self._extract_bearer_token(request.headers.get("Authorization"))
        if not token:
            self._record("missing")
            raise Unauthenticated("Authorization header with Bearer token required")

        try:
            identity = self.codec.validate(token)
        except TokenInvalid as e:
            self._record("expired" if isinstance(e, TokenExpired) else "invalid")
            self.logger.warning("Session token rejected", reason=e.code)
            raise Forbidden(details={"reason": e.code}) from e

        self._record("valid")
        set_user_context(user_id=identity.email)

        try:
            request.state.identity = identity
        except AttributeError:
            pass

        return identity

    @staticmethod
    def _extract_bearer_token(auth_header: Optional[str]) -> Optional[str]:
        if not auth_header:
            return None
        parts = auth_header.split(" ")
        if len(parts) < 2 or parts[0].lower() != "bearer":
            return None
        return parts[1] or None

    def _record(self, status: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("token_validations_total", status=status)
