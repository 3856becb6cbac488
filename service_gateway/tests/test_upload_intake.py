"""
Unit tests for UploadIntake.
"""

import io
import itertools
import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi import Request
from starlette.datastructures import FormData, Headers, UploadFile

from service_gateway.app.uploads.intake import MULTIPART_SLACK_BYTES, UploadIntake
from shared.errors import NoFilePresent, PayloadTooLarge
from shared.test_helpers import create_upload_bytes


BOUNDARY = "gateway-test-boundary"


def make_upload(data: bytes, filename: str = "photo.png", content_type: str = "image/png") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def multipart_scope() -> dict:
    """ASGI scope for a chunked multipart POST (no Content-Length)."""
    return {
        "type": "http",
        "method": "POST",
        "path": "/api/convert",
        "query_string": b"",
        "headers": [
            (b"content-type", f"multipart/form-data; boundary={BOUNDARY}".encode()),
            (b"transfer-encoding", b"chunked"),
        ],
    }


def file_part_head(filename: str) -> bytes:
    return (
        f"--{BOUNDARY}\r\n"
        f'Content-Disposition: form-data; name="file"; filename="{filename}"\r\n'
        "Content-Type: application/octet-stream\r\n\r\n"
    ).encode()


def text_part(name: str, value: str) -> bytes:
    return (
        f"\r\n--{BOUNDARY}\r\n"
        f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
        f"{value}"
    ).encode()


def closing() -> bytes:
    return f"\r\n--{BOUNDARY}--\r\n".encode()


def streaming_receive(chunks):
    """ASGI receive callable yielding chunks; records how many bytes were pulled."""
    iterator = iter(chunks)
    sent = {"bytes": 0}

    async def receive():
        chunk = next(iterator, None)
        if chunk is None:
            return {"type": "http.request", "body": b"", "more_body": False}
        sent["bytes"] += len(chunk)
        return {"type": "http.request", "body": chunk, "more_body": True}

    return receive, sent


class TestUploadIntake:
    """Test cases for UploadIntake."""

    @pytest.fixture
    def intake(self):
        return UploadIntake(max_bytes=1024)

    @pytest.mark.asyncio
    async def test_buffers_file_into_memory(self, intake):
        form = FormData([("file", make_upload(b"abc")), ("targetType", "jpg")])

        payload = await intake.intake(form)

        assert payload.original_name == "photo.png"
        assert payload.content_type == "image/png"
        assert payload.data == b"abc"
        assert payload.size == 3

    @pytest.mark.asyncio
    async def test_exactly_at_limit_is_accepted(self, intake):
        form = FormData([("file", make_upload(create_upload_bytes(1024)))])

        payload = await intake.intake(form)

        assert payload.size == 1024

    @pytest.mark.asyncio
    async def test_one_byte_over_limit_is_rejected(self, intake):
        form = FormData([("file", make_upload(create_upload_bytes(1025)))])

        with pytest.raises(PayloadTooLarge) as exc_info:
            await intake.intake(form)
        assert exc_info.value.status_code == 413

    @pytest.mark.asyncio
    async def test_default_limit_is_ten_mebibytes(self):
        assert UploadIntake().max_bytes == 10 * 1024 * 1024

    @pytest.mark.asyncio
    async def test_missing_field(self, intake):
        with pytest.raises(NoFilePresent):
            await intake.intake(FormData([("targetType", "jpg")]))

    @pytest.mark.asyncio
    async def test_text_field_is_not_a_file(self, intake):
        with pytest.raises(NoFilePresent):
            await intake.intake(FormData([("file", "photo.png")]))

    @pytest.mark.asyncio
    async def test_empty_file_input_is_not_a_file(self, intake):
        form = FormData([("file", make_upload(b"", filename=""))])

        with pytest.raises(NoFilePresent):
            await intake.intake(form)

    @pytest.mark.asyncio
    async def test_declared_oversize_body_is_rejected_before_parsing(self, intake):
        request = MagicMock(spec=Request)
        request.headers = {"content-length": str(10 * 1024 * 1024)}
        request.receive = AsyncMock()

        with pytest.raises(PayloadTooLarge):
            await intake.read_form(request)
        request.receive.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_read_form_parses_chunked_body(self, intake):
        body = file_part_head("photo.png") + b"abc" + text_part("targetType", "jpg") + closing()
        receive, _ = streaming_receive([body[:50], body[50:]])

        form = await intake.read_form(Request(multipart_scope(), receive))
        try:
            payload = await intake.intake(form)
            assert payload.data == b"abc"
            assert form.get("targetType") == "jpg"
        finally:
            await form.close()

    @pytest.mark.asyncio
    async def test_chunked_oversize_body_stops_at_the_ceiling(self, intake):
        chunk = b"x" * 4096
        chunks = itertools.chain([file_part_head("huge.bin")], itertools.repeat(chunk, 10_000))
        receive, sent = streaming_receive(chunks)

        with pytest.raises(PayloadTooLarge) as exc_info:
            await intake.read_form(Request(multipart_scope(), receive))

        assert exc_info.value.status_code == 413
        assert sent["bytes"] <= intake.max_bytes + MULTIPART_SLACK_BYTES + len(chunk)
