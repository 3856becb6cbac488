"""
Session token issuance and validation for the Gateway.

Session tokens are stateless HS256 JWTs carrying the identity claims
(name, email, picture) plus `iat`/`exp`. They expire exactly
SESSION_TTL_SECONDS after issuance and are never stored server-side.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from jose import JWTError, jwt

from shared.config import SESSION_TTL_SECONDS
from shared.errors import ConfigurationError, TokenExpired, TokenInvalid, TokenMissing

from ..models import Identity


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionTokenCodec:
    """Creates and validates signed, time-limited session tokens."""

    algorithm = "HS256"

    def __init__(
        self,
        secret: str,
        *,
        ttl: timedelta = timedelta(seconds=SESSION_TTL_SECONDS),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ConfigurationError("JWT_SECRET must be set to sign session tokens")
        self._secret = secret
        self.ttl = ttl
        self._clock = clock

    def issue(self, identity: Identity) -> str:
        """Sign a session token for the given identity."""
        issued_at = self._clock()
        claims: Dict[str, Any] = identity.model_dump()
        claims["iat"] = int(issued_at.timestamp())
        claims["exp"] = claims["iat"] + int(self.ttl.total_seconds())
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def validate(self, token: Optional[str]) -> Identity:
        """Verify signature and expiry, returning the embedded identity."""
        if not token:
            raise TokenMissing()

        try:
            # Expiry is checked against the codec clock below.
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "require_exp": True},
            )
        except JWTError as exc:
            raise TokenInvalid(details={"error": str(exc)}) from exc

        expires_at = claims.get("exp")
        if not isinstance(expires_at, (int, float)) or isinstance(expires_at, bool):
            raise TokenInvalid("Session token has a malformed expiry")
        if self._clock().timestamp() >= expires_at:
            raise TokenExpired(details={"exp": expires_at})

        email = claims.get("email")
        if not isinstance(email, str) or not email:
            raise TokenInvalid("Session token missing email claim")

        return Identity(
            name=claims.get("name"),
            email=email,
            picture=claims.get("picture"),
        )
