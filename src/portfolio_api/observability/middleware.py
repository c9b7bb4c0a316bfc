"""
portfolio_api.observability.middleware

HTTP middleware for request-scoped logging context and audit logging.

Responsibilities:
- Generate/propagate request IDs.
- Bind request metadata into structlog contextvars.
- Capture request and response bodies and log them with credentials redacted.
"""

from __future__ import annotations

import json
import time
import uuid
from typing import Any
from urllib.parse import parse_qsl

import structlog
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from portfolio_api.observability.logging import get_logger, redact

log = get_logger("portfolio_api.http")

# Bodies are only captured up to this size; anything past it is not logged.
MAX_CAPTURED_BYTES = 64 * 1024
_TEXT_PREVIEW_CHARS = 200


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    - Ensures every request has a request id
    - Binds request-scoped contextvars for structured logs
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        # Prefer a caller-provided request id for trace continuity; otherwise generate one.
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
        )
        try:
            response: Response = await call_next(request)
        finally:
            # Avoid leaking context across requests under async concurrency.
            structlog.contextvars.clear_contextvars()

        response.headers["x-request-id"] = request_id
        return response


class _BodyBuffer:
    def __init__(self) -> None:
        self._chunks: list[bytes] = []
        self._size = 0
        self.truncated = False

    def add(self, chunk: bytes) -> None:
        if self._size >= MAX_CAPTURED_BYTES:
            self.truncated = self.truncated or bool(chunk)
            return
        room = MAX_CAPTURED_BYTES - self._size
        if len(chunk) > room:
            self.truncated = True
        self._chunks.append(chunk[:room])
        self._size += min(len(chunk), room)

    @property
    def data(self) -> bytes:
        return b"".join(self._chunks)


class RequestCapture:
    """Wraps the ASGI `receive` callable and keeps a copy of the request body."""

    def __init__(self, receive: Receive) -> None:
        self._receive = receive
        self.buffer = _BodyBuffer()

    async def __call__(self) -> Message:
        message = await self._receive()
        if message["type"] == "http.request":
            self.buffer.add(message.get("body", b""))
        return message


class ResponseCapture:
    """Wraps the ASGI `send` callable and keeps a copy of every body chunk written."""

    def __init__(self, send: Send) -> None:
        self._send = send
        self.status_code: int | None = None
        self.headers = Headers()
        self.buffer = _BodyBuffer()

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.status_code = message["status"]
            self.headers = Headers(raw=message.get("headers", []))
        elif message["type"] == "http.response.body":
            self.buffer.add(message.get("body", b""))
        await self._send(message)


def describe_body(raw: bytes, content_type: str | None, *, truncated: bool = False) -> Any:
    """Render a captured body for the log line: parsed + redacted JSON, or a short preview."""

    if not raw:
        return None
    content_type = (content_type or "").lower()
    if "json" in content_type and not truncated:
        try:
            return redact(json.loads(raw))
        except ValueError:
            pass
    if content_type.startswith("application/x-www-form-urlencoded") and not truncated:
        return redact(dict(parse_qsl(raw.decode("latin-1"), keep_blank_values=True)))
    if content_type.startswith("multipart/"):
        return f"<multipart {len(raw)}{'+' if truncated else ''} bytes>"
    text = raw.decode("utf-8", errors="replace")
    if len(text) > _TEXT_PREVIEW_CHARS:
        return text[:_TEXT_PREVIEW_CHARS] + "..."
    return text


class RequestLoggingMiddleware:
    """
    Logs one `http_request` event per request after the handler completes.

    Bodies are attached for every request when `log_bodies` is set (non-prod) and
    for failed requests otherwise.
    """

    def __init__(self, app: ASGIApp, *, log_bodies: bool = True) -> None:
        self.app = app
        self.log_bodies = log_bodies

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_capture = RequestCapture(receive)
        response_capture = ResponseCapture(send)
        started = time.perf_counter()
        try:
            await self.app(scope, request_capture, response_capture)
        finally:
            self._log(scope, request_capture, response_capture, time.perf_counter() - started)

    def _log(
        self,
        scope: Scope,
        request_capture: RequestCapture,
        response_capture: ResponseCapture,
        elapsed: float,
    ) -> None:
        status_code = response_capture.status_code or 500
        client = scope.get("client")
        fields: dict[str, Any] = {
            "http_method": scope["method"],
            "url": scope["path"] + (f"?{scope['query_string'].decode('latin-1')}" if scope.get("query_string") else ""),
            "status_code": status_code,
            "duration_ms": round(elapsed * 1000, 2),
            "client": client[0] if client else None,
        }
        if self.log_bodies or status_code >= 400:
            request_headers = Headers(scope=scope)
            fields["request_body"] = describe_body(
                request_capture.buffer.data,
                request_headers.get("content-type"),
                truncated=request_capture.buffer.truncated,
            )
            fields["response_body"] = describe_body(
                response_capture.buffer.data,
                response_capture.headers.get("content-type"),
                truncated=response_capture.buffer.truncated,
            )

        if status_code >= 500:
            log.error("http_request", **fields)
        elif status_code >= 400:
            log.warning("http_request", **fields)
        else:
            log.info("http_request", **fields)


# --- Module Notes -----------------------------------------------------------
# RequestLoggingMiddleware sits inside the gzip stage, so captured response bodies
# are always the uncompressed payload.
