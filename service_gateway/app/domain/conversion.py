"""
The guarded convert operation.

"Conversion" is a naming transform only: the original file's last
extension segment is swapped for the requested target type. No bytes
are touched. Every attempt that reaches this service leaves exactly one
audit entry behind, whatever the outcome.
"""

from typing import Optional, Tuple

from shared.errors import InternalError, ValidationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..audit.store import AuditLogStore
from ..models import AuditAction, AuditStatus, ConvertResponse, Identity, UploadPayload

MISSING_INPUT_MESSAGE = "Missing file or target type"
INTERNAL_ERROR_MESSAGE = "Internal error"


def split_extension(filename: str) -> Tuple[str, str]:
    """Split on the last dot; a name without one is all extension, no base."""
    segments = filename.split(".")
    return ".".join(segments[:-1]), segments[-1]


def converted_name(filename: str, target_type: str) -> str:
    base, _ = split_extension(filename)
    return f"{base}.{target_type}"


def describe_conversion(filename: str, target_type: str) -> str:
    _, extension = split_extension(filename)
    return f"{extension.upper()} → {target_type.upper()}"


class ConversionService:
    """Runs a convert attempt and records its outcome in the audit trail."""

    def __init__(self, audit_store: AuditLogStore, metrics: Optional[MetricsCollector] = None):
        self.audit_store = audit_store
        self.metrics = metrics
        self.logger = get_logger("gateway.conversion")

    def convert(
        self,
        identity: Identity,
        upload: Optional[UploadPayload],
        target_type: Optional[str],
    ) -> ConvertResponse:
        """Return the success response carrying the converted file name.

        Raises ValidationError when the file or target type is missing and
        InternalError on any unexpected failure; both after auditing.
        """
        filename = upload.original_name if upload else None

        if upload is None or not target_type:
            self.audit_store.append(
                user=identity.email,
                action=AuditAction.CONVERT,
                status=AuditStatus.FAILED,
                file=filename,
                message=MISSING_INPUT_MESSAGE,
            )
            raise ValidationError(MISSING_INPUT_MESSAGE)

        try:
            new_name = converted_name(upload.original_name, target_type)
            from_to = describe_conversion(upload.original_name, target_type)
            response = ConvertResponse(success=True, converted_name=new_name)
            if self.metrics:
                self.metrics.record_business_event("file_converted")
            self.logger.info(
                "File converted",
                filename=upload.original_name,
                converted_name=new_name,
                size_bytes=upload.size,
            )
            # Last step: once the success entry is stored the attempt is recorded.
            self.audit_store.append(
                user=identity.email,
                action=AuditAction.CONVERT,
                status=AuditStatus.SUCCESS,
                file=upload.original_name,
                from_to=from_to,
            )
        except Exception as exc:
            self.logger.error(
                "Conversion failed",
                filename=filename,
                error=str(exc),
                exc_info=True,
            )
            self.audit_store.append(
                user=identity.email,
                action=AuditAction.ERROR,
                status=AuditStatus.FAILED,
                file=filename,
                message=INTERNAL_ERROR_MESSAGE,
            )
            raise InternalError(INTERNAL_ERROR_MESSAGE) from exc

        return response
