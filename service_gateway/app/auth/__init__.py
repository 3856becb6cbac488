"""
Authentication utilities for the Gateway.

- google: verifies Google ID tokens (the login credential) against Google's JWKS.
- session_tokens: issues and validates the gateway's own session JWTs.
"""

from .google import GoogleIdentityVerifier
from .session_tokens import SessionTokenCodec

__all__ = ["GoogleIdentityVerifier", "SessionTokenCodec"]
