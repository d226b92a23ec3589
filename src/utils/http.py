"""Helpers shared by the serverless HTTP handlers."""

import asyncio
import io
import json
from http.server import BaseHTTPRequestHandler
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from src.models.ingestion import UploadedFile
from src.utils.errors import DecodeError, DistributorError, FileTooLargeError
from src.utils.logging_config import LoggingConfig

INTERNAL_ERROR_MESSAGE = "Internal Server Error"
MALFORMED_UPLOAD_MESSAGE = "Malformed multipart upload."
UPLOAD_CHUNK_BYTES = 64 * 1024


def run_async(coro):
    """Run a coroutine to completion from synchronous handler code."""
    try:
        loop = asyncio.get_event_loop()
        if loop.is_closed():
            raise RuntimeError("event loop is closed")
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


def send_json(handler: BaseHTTPRequestHandler, status: int, payload: Any) -> None:
    handler.send_response(status)
    handler.send_header('Content-Type', 'application/json')
    handler.end_headers()
    handler.wfile.write(json.dumps(payload).encode('utf-8'))


def send_error(handler: BaseHTTPRequestHandler, error: DistributorError) -> None:
    """Client errors carry their message; everything else is generic."""
    if error.is_client_error:
        send_json(handler, error.status_code, {"success": False, "message": error.message})
    else:
        send_json(handler, 500, {"success": False, "message": INTERNAL_ERROR_MESSAGE})


def content_length(handler: BaseHTTPRequestHandler) -> int:
    try:
        return max(int(handler.headers.get('Content-Length', 0)), 0)
    except ValueError:
        return 0


def read_body(handler: BaseHTTPRequestHandler) -> bytes:
    length = content_length(handler)
    return handler.rfile.read(length) if length > 0 else b""


def read_json_body(handler: BaseHTTPRequestHandler) -> Optional[dict]:
    """Parse a JSON object body; None when the body is not a JSON object."""
    raw = read_body(handler)
    try:
        body = json.loads(raw.decode('utf-8')) if raw else {}
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


def query_param(handler: BaseHTTPRequestHandler, name: str) -> Optional[str]:
    values = parse_qs(urlparse(handler.path).query).get(name)
    return values[0] if values else None


def correlation_id_from(handler: BaseHTTPRequestHandler) -> Optional[str]:
    return handler.headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER)


def is_multipart(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.split(";")[0].strip().lower() == "multipart/form-data"


class _FilePartCollector:
    """MultipartParser callbacks that keep only the first file part named `field_name`."""

    def __init__(self, field_name: str, max_bytes: int):
        self.field_name = field_name
        self.max_bytes = max_bytes
        self.upload: Optional[UploadedFile] = None
        self._header_field = bytearray()
        self._header_value = bytearray()
        self._headers: dict[bytes, bytes] = {}
        self._file_name: Optional[str] = None
        self._buffer: Optional[io.BytesIO] = None

    def callbacks(self) -> dict:
        return {
            "on_part_begin": self.on_part_begin,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
        }

    def on_part_begin(self) -> None:
        self._headers = {}
        self._file_name = None
        self._buffer = None

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._headers[bytes(self._header_field).strip().lower()] = bytes(self._header_value).strip()
        self._header_field.clear()
        self._header_value.clear()

    def on_headers_finished(self) -> None:
        if self.upload is not None:
            return
        _, options = parse_options_header(self._headers.get(b"content-disposition"))
        if options.get(b"name", b"").decode("latin-1") != self.field_name:
            return
        file_name = options.get(b"filename")
        if not file_name:
            return
        self._file_name = file_name.decode("utf-8", errors="replace")
        self._buffer = io.BytesIO()

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._buffer is None:
            return
        self._buffer.write(data[start:end])
        if self._buffer.tell() > self.max_bytes:
            raise FileTooLargeError(f"Uploaded file is too large. Limit is {self.max_bytes} bytes.")

    def on_part_end(self) -> None:
        if self._buffer is not None:
            self.upload = UploadedFile(file_name=self._file_name, content=self._buffer.getvalue())
            self._buffer = None


def read_multipart_file(
    handler: BaseHTTPRequestHandler,
    field_name: str,
    max_bytes: int,
) -> Optional[UploadedFile]:
    """Stream a multipart/form-data body from the socket and return the file part.

    Only the wanted part is buffered; it is cut off with FileTooLargeError as
    soon as it passes `max_bytes`. None when the body carries no such file.
    """
    _, options = parse_options_header(handler.headers.get('Content-Type'))
    boundary = options.get(b"boundary")
    if not boundary:
        raise DecodeError(MALFORMED_UPLOAD_MESSAGE)

    collector = _FilePartCollector(field_name, max_bytes)
    parser = MultipartParser(boundary, collector.callbacks())
    remaining = content_length(handler)
    try:
        while remaining > 0:
            chunk = handler.rfile.read(min(UPLOAD_CHUNK_BYTES, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            parser.write(chunk)
        parser.finalize()
    except MultipartParseError as e:
        raise DecodeError(MALFORMED_UPLOAD_MESSAGE, cause=e) from e
    return collector.upload
