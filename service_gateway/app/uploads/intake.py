"""
Bounded ingestion of a single uploaded file.
"""

from typing import Optional

from fastapi import Request
from starlette.datastructures import FormData, UploadFile
from starlette.types import Message, Receive

from shared.config import MAX_UPLOAD_BYTES
from shared.errors import NoFilePresent, PayloadTooLarge
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..models import UploadPayload

CHUNK_SIZE = 64 * 1024
# Allowance for multipart boundaries, part headers and small text fields.
MULTIPART_SLACK_BYTES = 64 * 1024


class UploadIntake:
    """Buffers one named file field into memory, refusing anything over the limit."""

    def __init__(
        self,
        max_bytes: int = MAX_UPLOAD_BYTES,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.max_bytes = max_bytes
        self.metrics = metrics
        self.logger = get_logger("gateway.uploads")

    async def read_form(self, request: Request) -> FormData:
        """Parse the multipart body, refusing to read past the size ceiling."""
        ceiling = self.max_bytes + MULTIPART_SLACK_BYTES

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            if int(content_length) > ceiling:
                self.logger.warning(
                    "Upload rejected by declared length",
                    content_length=int(content_length),
                    limit=self.max_bytes,
                )
                raise PayloadTooLarge(self.max_bytes, {"content_length": int(content_length)})

        # Chunked bodies carry no length, so count bytes as they arrive.
        bounded = Request(request.scope, receive=self._bounded_receive(request.receive, ceiling))
        return await bounded.form()

    def _bounded_receive(self, receive: Receive, ceiling: int) -> Receive:
        received = 0

        async def bounded_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > ceiling:
                    self.logger.warning(
                        "Upload rejected while streaming",
                        received_bytes=received,
                        limit=self.max_bytes,
                    )
                    raise PayloadTooLarge(self.max_bytes, {"received_bytes": received})
            return message

        return bounded_receive

    async def intake(self, form: FormData, field: str = "file") -> UploadPayload:
        """Buffer the named file field, failing once the ceiling is crossed."""
        upload = form.get(field)
        # Browsers submit an empty file input as a part with an empty filename.
        if not isinstance(upload, UploadFile) or not upload.filename:
            raise NoFilePresent(field)

        buffer = bytearray()
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            if len(buffer) + len(chunk) > self.max_bytes:
                self.logger.warning(
                    "Upload rejected while buffering",
                    filename=upload.filename,
                    limit=self.max_bytes,
                )
                raise PayloadTooLarge(self.max_bytes, {"filename": upload.filename})
            buffer.extend(chunk)

        payload = UploadPayload(
            original_name=upload.filename or "",
            content_type=upload.content_type,
            data=bytes(buffer),
        )
        if self.metrics:
            self.metrics.observe_histogram("upload_size_bytes", payload.size)
        return payload
