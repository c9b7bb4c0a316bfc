"""
portfolio_api.api.rate_limit

Per-client rate limiting for the API.

Responsibilities:
- Apply a general limit to everything under `/api/`.
- Apply a stricter limit to the login endpoint to slow credential guessing.
- Reject over-limit requests through the normalized error envelope.
"""

from __future__ import annotations

import time

from limits import RateLimitItem, parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from portfolio_api.api.errors import error_response
from portfolio_api.errors import RateLimitExceededError

API_PREFIX = "/api/"
LOGIN_PATHS: frozenset[str] = frozenset({"/api/v1/auth/login", "/api/auth/login"})

API_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."
LOGIN_LIMIT_MESSAGE = "Too many login attempts from this IP, please try again later."


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed-window counters keyed by client IP, held in process memory.
    """

    def __init__(self, app: ASGIApp, *, api_limit: str, login_limit: str) -> None:
        super().__init__(app)
        self._limiter = FixedWindowRateLimiter(MemoryStorage())
        self._api_limit = parse(api_limit)
        self._login_limit = parse(login_limit)

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        key = client_key(request)

        if request.method == "POST" and path.rstrip("/") in LOGIN_PATHS:
            if not self._limiter.hit(self._login_limit, "login", key):
                return self._reject(request, LOGIN_LIMIT_MESSAGE, self._login_limit, "login", key)

        if path.startswith(API_PREFIX):
            if not self._limiter.hit(self._api_limit, "api", key):
                return self._reject(request, API_LIMIT_MESSAGE, self._api_limit, "api", key)

        return await call_next(request)

    def _reject(self, request: Request, message: str, item: RateLimitItem, scope: str, key: str) -> Response:
        reset_at = self._limiter.get_window_stats(item, scope, key).reset_time
        retry_after = max(1, int(reset_at - time.time()))
        return error_response(
            RateLimitExceededError(message, retry_after=retry_after),
            method=request.method,
            path=request.url.path,
            settings=request.app.state.settings,
        )


# --- Module Notes -----------------------------------------------------------
# Limits are per process; a multi-instance deployment would point `MemoryStorage`
# at a shared backend instead.
