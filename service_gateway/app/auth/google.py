"""
Google ID token verification for the Gateway.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence

import httpx
from jose import JOSEError, jwt

from shared.config import GOOGLE_ISSUERS, GOOGLE_JWKS_URL
from shared.errors import InvalidExternalToken
from shared.logging import get_logger

from ..models import Identity


class GoogleIdentityVerifier:
    """Verifies Google-issued ID tokens against Google's published JWKS."""

    def __init__(
        self,
        client_id: str,
        jwks_url: str = GOOGLE_JWKS_URL,
        issuers: Sequence[str] = GOOGLE_ISSUERS,
        *,
        refresh_interval: int = 300,
        http_timeout: float = 5.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.client_id = client_id
        self.jwks_url = jwks_url
        self.issuers = list(issuers)
        self.refresh_interval = refresh_interval
        self.logger = get_logger("gateway.auth.google")

        self._keys: Optional[List[Dict[str, Any]]] = None
        self._last_refresh: float = 0.0
        self._lock = asyncio.Lock()
        self._client = http_client or httpx.AsyncClient(timeout=http_timeout)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def warmup(self) -> None:
        """Eagerly load signing keys so the first login does not pay the cost."""
        try:
            await self._refresh_keys(force=True)
        except (httpx.HTTPError, ValueError, InvalidExternalToken) as exc:
            self.logger.warning("JWKS warmup failed", error=str(exc))

    async def verify(self, external_token: str) -> Identity:
        """Verify the external token and extract the user's identity."""
        try:
            claims = await self._validate_token(external_token)
        except InvalidExternalToken:
            raise
        except (httpx.HTTPError, ValueError) as exc:
            self.logger.error("Identity provider unreachable", error=str(exc))
            raise InvalidExternalToken(details={"error": "identity provider unavailable"}) from exc
        except JOSEError as exc:
            raise InvalidExternalToken(details={"error": str(exc)}) from exc

        email = claims.get("email")
        if not isinstance(email, str) or not email:
            raise InvalidExternalToken(details={"error": "token missing email claim"})

        return Identity(
            name=claims.get("name"),
            email=email,
            picture=claims.get("picture"),
        )

    async def _validate_token(self, token: str) -> Dict[str, Any]:
        """Validate the ID token and return its claims."""
        header = jwt.get_unverified_header(token)
        kid = header.get("kid")
        if not isinstance(kid, str):
            raise InvalidExternalToken(details={"error": "token header missing key id (kid)"})

        key_data = await self._get_key(kid)
        if not key_data:
            raise InvalidExternalToken(details={"error": "signing key not found", "kid": kid})

        return jwt.decode(
            token,
            key_data,
            algorithms=[key_data.get("alg", "RS256")],
            audience=self.client_id,
            issuer=self.issuers,
            # Google Sign-In credentials are not paired with an access token.
            options={"verify_at_hash": False},
        )

    async def _get_key(self, kid: str) -> Optional[Dict[str, Any]]:
        """Return the JWKS key matching kid, refreshing once on a miss."""
        await self._refresh_keys(force=False)
        key = self._find_key(self._keys, kid)
        if key is not None:
            return key

        # Google rotates keys; refresh once more eagerly.
        await self._refresh_keys(force=True)
        return self._find_key(self._keys, kid)

    @staticmethod
    def _find_key(keys: Optional[Iterable[Dict[str, Any]]], kid: str) -> Optional[Dict[str, Any]]:
        for key in keys or []:
            if key.get("kid") == kid:
                return key
        return None

    async def _refresh_keys(self, *, force: bool) -> None:
        """Refresh the JWKS if the cache is stale."""
        now = time.time()
        if not force and self._keys is not None and (now - self._last_refresh) < self.refresh_interval:
            return

        async with self._lock:
            if not force and self._keys is not None and (time.time() - self._last_refresh) < self.refresh_interval:
                return

            response = await self._client.get(self.jwks_url)
            response.raise_for_status()
            payload = response.json()
            keys = payload.get("keys")
            if not isinstance(keys, list):
                raise InvalidExternalToken(details={"error": "JWKS response missing 'keys' array"})

            self._keys = keys
            self._last_refresh = time.time()
            self.logger.info("JWKS refreshed", key_count=len(keys))
