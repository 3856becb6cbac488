"""
Audit trail package.

Holds the process-lifetime record of guarded actions. The store is owned
by the service object and injected into handlers; nothing here is module
state.
"""

from .store import AuditLogStore

__all__ = ["AuditLogStore"]
