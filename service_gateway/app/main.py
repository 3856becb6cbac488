"""
Convert Gateway service.
"""

from typing import Any, Dict, List, Optional

from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import GOOGLE_ISSUERS, ServiceConfig
from shared.errors import InternalError, InvalidExternalToken, NoFilePresent, ValidationError

from .audit.store import AuditLogStore
from .auth.google import GoogleIdentityVerifier
from .auth.session_tokens import SessionTokenCodec
from .domain.auth_middleware import AuthGuard
from .domain.conversion import ConversionService
from .models import ConvertResponse, GoogleAuthResponse, Identity
from .uploads.intake import UploadIntake


class GatewayService(BaseService):
    """Gateway service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        identity_verifier: Optional[GoogleIdentityVerifier] = None,
        audit_store: Optional[AuditLogStore] = None,
    ):
        super().__init__("gateway", config)

        self.identity_verifier = identity_verifier or GoogleIdentityVerifier(
            self.config.google_client_id,
            self.config.google_jwks_url,
            GOOGLE_ISSUERS,
            refresh_interval=self.config.jwks_refresh_interval,
            http_timeout=self.config.http_timeout,
        )
        self.session_codec = SessionTokenCodec(self.config.jwt_secret)
        self.auth_guard = AuthGuard(self.session_codec, metrics=self.metrics)
        self.audit_store = audit_store if audit_store is not None else AuditLogStore(metrics=self.metrics)
        self.upload_intake = UploadIntake(metrics=self.metrics)
        self.conversion_service = ConversionService(self.audit_store, metrics=self.metrics)

        if not self.config.google_client_id:
            self.logger.warning("GOOGLE_CLIENT_ID is not set; every login will be rejected")

        self._setup_gateway_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.gateway_service = self

    async def startup(self) -> None:
        await self.identity_verifier.warmup()
        self.logger.info("Gateway started", port=self.config.port)

    async def shutdown(self) -> None:
        await self.identity_verifier.close()

    def _setup_gateway_routes(self):
        """Set up gateway-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "gateway",
                "message": "Convert Gateway",
                "version": "1.0.0",
                "uptime_seconds": round(self._get_uptime(), 3),
            }

        @self.app.post("/api/auth/google", response_model=GoogleAuthResponse)
        async def google_auth(request: Request):
            """Exchange a Google ID token for a gateway session token."""
            try:
                body = await request.json()
            except ValueError as e:
                raise ValidationError("Request body must be JSON") from e

            token = body.get("token") if isinstance(body, dict) else None
            if not token:
                raise ValidationError("Token missing")

            if not isinstance(token, str):
                self.logger.warning("Google auth error", error="token is not a string")
                raise InvalidExternalToken()

            try:
                identity = await self.identity_verifier.verify(token)
                session_token = self.session_codec.issue(identity)
            except Exception as e:
                self.logger.warning(
                    "Google auth error",
                    error=str(e),
                    details=getattr(e, "details", {}),
                )
                raise InvalidExternalToken() from e

            self.metrics.record_business_event("user_logged_in")
            self.logger.info("User logged in", user_id=identity.email)
            return GoogleAuthResponse(token=session_token, user=identity)

        @self.app.post("/api/convert")
        async def convert(request: Request, identity: Identity = Depends(self.auth_guard)):
            """Rename an uploaded file to the requested target type."""
            form = await self.upload_intake.read_form(request)
            try:
                try:
                    upload = await self.upload_intake.intake(form, "file")
                except NoFilePresent:
                    upload = None

                target_type = form.get("targetType")
                if not isinstance(target_type, str):
                    target_type = None

                try:
                    response = self.conversion_service.convert(identity, upload, target_type)
                except ValidationError:
                    return JSONResponse(status_code=400, content=ConvertResponse(success=False).to_wire())
                except InternalError:
                    return JSONResponse(status_code=500, content=ConvertResponse(success=False).to_wire())

                return response.to_wire()
            finally:
                await form.close()

        @self.app.get("/api/audit-logs")
        async def audit_logs(identity: Identity = Depends(self.auth_guard)) -> List[Dict[str, Any]]:
            """Every recorded audit entry, newest first."""
            return [entry.to_wire() for entry in self.audit_store.list()]


def create_app(config: Optional[ServiceConfig] = None, **kwargs):
    """Create FastAPI application."""
    service = GatewayService(config, **kwargs)
    return service.app


def main():
    service = GatewayService()
    service.run()


if __name__ == "__main__":
    main()
