"""
Domain layer for the Gateway Service.

- auth_middleware: the bearer-token guard in front of protected routes.
- conversion: the audited convert operation.
"""

from .auth_middleware import AuthGuard
from .conversion import ConversionService

__all__ = ["AuthGuard", "ConversionService"]
