"""Test helper functions."""

import json
import uuid
from io import BytesIO
from typing import Any, Dict, Optional


def build_multipart(
    file_name: str,
    content: bytes,
    field_name: str = "file",
    extra_fields: Optional[Dict[str, str]] = None,
) -> tuple[str, bytes]:
    """Build a multipart/form-data body; returns (content_type, body)."""
    boundary = f"----testboundary{uuid.uuid4().hex}"
    parts = []
    for name, value in (extra_fields or {}).items():
        parts.append(
            f'--{boundary}\r\nContent-Disposition: form-data; name="{name}"\r\n\r\n{value}\r\n'.encode()
        )
    parts.append(
        (
            f'--{boundary}\r\n'
            f'Content-Disposition: form-data; name="{field_name}"; filename="{file_name}"\r\n'
            f'Content-Type: application/octet-stream\r\n\r\n'
        ).encode() + content + b"\r\n"
    )
    parts.append(f"--{boundary}--\r\n".encode())
    return f"multipart/form-data; boundary={boundary}", b"".join(parts)


class MockSocket:
    """Socket stand-in feeding a raw request and capturing the raw response."""

    def __init__(self, request_bytes: bytes):
        self._request = request_bytes
        self.sent = bytearray()

    def makefile(self, *args, **kwargs):
        return BytesIO(self._request)

    def sendall(self, data):
        self.sent.extend(data)

    def close(self):
        pass


def parse_response(raw: bytes) -> Dict[str, Any]:
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()
    return {
        "status": int(lines[0].split()[1]),
        "headers": headers,
        "json": json.loads(body.decode("utf-8")) if body else None,
    }


def call_handler(
    handler_cls,
    method: str,
    path: str,
    headers: Optional[Dict[str, str]] = None,
    body: bytes = b"",
) -> Dict[str, Any]:
    """Push one raw HTTP request through a BaseHTTPRequestHandler subclass."""
    headers = dict(headers or {})
    if body and "Content-Length" not in headers:
        headers["Content-Length"] = str(len(body))
    head = f"{method} {path} HTTP/1.1\r\n" + "".join(f"{k}: {v}\r\n" for k, v in headers.items()) + "\r\n"
    sock = MockSocket(head.encode("latin-1") + body)
    handler_cls(sock, ("127.0.0.1", 8000), None)
    return parse_response(bytes(sock.sent))
