"""
In-memory audit trail for guarded Gateway actions.

Entries live for the lifetime of the process only. The newest entry is
always first.
"""

import threading
import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, List, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..models import AuditAction, AuditEntry, AuditStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a Z suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class AuditLogStore:
    """Append-only, newest-first store of audit entries."""

    def __init__(
        self,
        metrics: Optional[MetricsCollector] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._entries: Deque[AuditEntry] = deque()
        self._lock = threading.Lock()
        self._clock = clock
        self.metrics = metrics
        self.logger = get_logger("gateway.audit")

    def append(
        self,
        user: str,
        action: AuditAction,
        status: AuditStatus,
        file: Optional[str] = None,
        from_to: Optional[str] = None,
        message: Optional[str] = None,
    ) -> AuditEntry:
        """Record one guarded action attempt at the head of the log."""
        entry = AuditEntry(
            id=uuid.uuid4().hex,
            timestamp=format_timestamp(self._clock()),
            user=user,
            action=action,
            file=file or "unknown",
            from_to=from_to,
            status=status,
            message=message,
        )

        with self._lock:
            self._entries.appendleft(entry)

        self.logger.info(
            "audit_entry_recorded",
            entry_id=entry.id,
            user=user,
            action=action.value,
            status=status.value,
            file=entry.file,
        )
        if self.metrics:
            self.metrics.increment_counter(
                "audit_entries_total", action=action.value, status=status.value
            )
        return entry

    def list(self) -> List[AuditEntry]:
        """Snapshot of every entry, newest first."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
