"""
portfolio_api.api.pipeline

Request pipeline assembly.

Responsibilities:
- Define the cross-cutting stages that wrap every route (security headers, CORS
  origin check, body ceiling + sanitization, duplicate-parameter collapsing).
- Install all stages on the app in one fixed order.

Stage order, outermost first:
    request context -> security headers -> CORS origin check -> CORS headers ->
    gzip -> body ceiling + sanitization -> parameter collapsing -> request logging ->
    rate limiting -> error normalization -> routes (404 fallback included)
"""

from __future__ import annotations

import json
from urllib.parse import parse_qsl, urlencode

from fastapi import FastAPI
from starlette.datastructures import Headers, MutableHeaders
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from portfolio_api.api.errors import ErrorNormalizerMiddleware, error_response
from portfolio_api.api.rate_limit import RateLimitMiddleware
from portfolio_api.api.sanitize import (
    REPEATABLE_PARAMS,
    collapse_query_string,
    sanitize_pairs,
    sanitize_query_string,
    sanitize_value,
)
from portfolio_api.auth.deps import TOKEN_HEADER
from portfolio_api.errors import CorsOriginError, PayloadTooLargeError
from portfolio_api.observability.middleware import RequestContextMiddleware, RequestLoggingMiddleware
from portfolio_api.settings import Settings
from portfolio_api.uploads.validation import UploadError, UploadErrorCode

SECURITY_HEADERS: dict[str, str] = {
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'self'; object-src 'none'",
    "Cross-Origin-Opener-Policy": "same-origin",
    # Uploaded images are embedded by the portfolio frontend on another origin.
    "Cross-Origin-Resource-Policy": "cross-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}

# The interactive docs load assets from a CDN and cannot run under the strict CSP.
_CSP_EXEMPT_PREFIXES = ("/docs", "/redoc", "/openapi.json")

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class SecurityHeadersMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        csp_exempt = scope["path"].startswith(_CSP_EXEMPT_PREFIXES)

        async def _send(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in SECURITY_HEADERS.items():
                    if csp_exempt and name == "Content-Security-Policy":
                        continue
                    headers.setdefault(name, value)
            await send(message)

        await self.app(scope, receive, _send)


class CorsOriginGuardMiddleware(BaseHTTPMiddleware):
    """
    Rejects browser requests from origins outside the allow-list with an explicit
    403 instead of silently omitting CORS headers. Requests without an Origin
    header (curl, server-to-server) pass through.
    """

    def __init__(self, app: ASGIApp, *, allowed_origins: tuple[str, ...]) -> None:
        super().__init__(app)
        self.allowed_origins = frozenset(allowed_origins)

    async def dispatch(self, request: Request, call_next) -> Response:
        origin = request.headers.get("origin")
        if origin and origin not in self.allowed_origins:
            return error_response(
                CorsOriginError(origin),
                method=request.method,
                path=request.url.path,
                settings=request.app.state.settings,
            )
        return await call_next(request)


class SanitizeMiddleware:
    """
    Enforces the body size ceiling and rewrites JSON bodies, urlencoded forms and
    the query string so route handlers only ever see sanitized input. Multipart
    bodies past the ceiling fail as an upload ("File too large"), not with 413.
    """

    def __init__(self, app: ASGIApp, *, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope.get("query_string"):
            scope["query_string"] = sanitize_query_string(scope["query_string"])

        headers = Headers(scope=scope)
        content_type = headers.get("content-type", "").split(";", 1)[0].strip().lower()
        multipart = content_type == "multipart/form-data"
        declared = headers.get("content-length")
        # Multipart bodies are only checked while streaming, after auth has run.
        if not multipart and declared and declared.isdigit() and int(declared) > self.max_body_bytes:
            await self._too_large(scope, receive, send)
            return

        rewritable = content_type == "application/json" or content_type.endswith("+json") or (
            content_type == "application/x-www-form-urlencoded"
        )
        if scope["method"] not in _BODY_METHODS or not rewritable:
            await self.app(scope, self._limited(receive, multipart=multipart), send)
            return

        try:
            body = await self._read_body(receive)
        except PayloadTooLargeError:
            await self._too_large(scope, receive, send)
            return

        body = self._sanitize_body(body, content_type)
        mutable = MutableHeaders(scope=scope)
        mutable["content-length"] = str(len(body))
        await self.app(scope, self._replay(body, receive), send)

    def _sanitize_body(self, body: bytes, content_type: str) -> bytes:
        if not body:
            return body
        if content_type == "application/x-www-form-urlencoded":
            pairs = parse_qsl(body.decode("latin-1"), keep_blank_values=True)
            return urlencode(sanitize_pairs(pairs)).encode("latin-1")
        try:
            parsed = json.loads(body)
        except ValueError:
            # Left as-is; body validation reports the malformed JSON.
            return body
        return json.dumps(sanitize_value(parsed)).encode("utf-8")

    async def _read_body(self, receive: Receive) -> bytes:
        chunks: list[bytes] = []
        size = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] != "http.request":
                break
            chunk = message.get("body", b"")
            size += len(chunk)
            if size > self.max_body_bytes:
                raise PayloadTooLargeError(self.max_body_bytes)
            chunks.append(chunk)
            more_body = message.get("more_body", False)
        return b"".join(chunks)

    def _replay(self, body: bytes, receive: Receive) -> Receive:
        sent = False

        async def _receive() -> Message:
            nonlocal sent
            if not sent:
                sent = True
                return {"type": "http.request", "body": body, "more_body": False}
            # Anything after the body (e.g. http.disconnect) comes from the server.
            return await receive()

        return _receive

    def _limited(self, receive: Receive, *, multipart: bool) -> Receive:
        size = 0

        async def _receive() -> Message:
            nonlocal size
            message = await receive()
            if message["type"] == "http.request":
                size += len(message.get("body", b""))
                if size > self.max_body_bytes:
                    if multipart:
                        raise UploadError(UploadErrorCode.file_size)
                    raise PayloadTooLargeError(self.max_body_bytes)
            return message

        return _receive

    async def _too_large(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = error_response(
            PayloadTooLargeError(self.max_body_bytes),
            method=scope["method"],
            path=scope["path"],
            settings=scope["app"].state.settings,
        )
        await response(scope, receive, send)


class ParameterPollutionMiddleware:
    def __init__(self, app: ASGIApp, *, whitelist: frozenset[str] = REPEATABLE_PARAMS) -> None:
        self.app = app
        self.whitelist = whitelist

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope.get("query_string"):
            scope["query_string"] = collapse_query_string(scope["query_string"], self.whitelist)
        await self.app(scope, receive, send)


def install_pipeline(app: FastAPI, settings: Settings) -> None:
    """
    Register every stage. Starlette wraps middleware in reverse registration
    order, so the innermost stage is added first.
    """

    app.add_middleware(ErrorNormalizerMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        api_limit=settings.rate_limit_api,
        login_limit=settings.rate_limit_login,
    )
    app.add_middleware(RequestLoggingMiddleware, log_bodies=not settings.is_production)
    app.add_middleware(ParameterPollutionMiddleware)
    app.add_middleware(SanitizeMiddleware, max_body_bytes=settings.max_body_bytes)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", TOKEN_HEADER],
        max_age=86400,
    )
    app.add_middleware(CorsOriginGuardMiddleware, allowed_origins=settings.allowed_origins)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)


# --- Module Notes -----------------------------------------------------------
# Exceptions raised by the routes are handled by FastAPI's exception handlers
# (see `api.errors.register_error_handlers`) or, failing that, by
# ErrorNormalizerMiddleware; stages outside it render their own rejections with
# the same `error_response` helper.
