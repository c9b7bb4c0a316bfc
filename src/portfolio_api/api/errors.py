"""
portfolio_api.api.errors

Centralized error normalization.

Responsibilities:
- Classify any raised fault into a tagged `NormalizedError` (pure, no I/O).
- Render a `NormalizedError` into the uniform JSON envelope, verbose in dev and
  terse in prod.
- Register one handler for every recognised error type plus a terminal ASGI
  stage that catches everything else.

Invariants:
- Every error response carries `status` and `message`.
- Field-level errors always name the field.
- In prod, unclassified faults never leak detail: they are logged in full and the
  client only sees "Something went wrong".
"""

from __future__ import annotations

import enum
import traceback
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from portfolio_api.auth.jwt import JwtValidationError, TokenExpiredError
from portfolio_api.db.errors import DuplicateKeyError, InvalidIdentifierError, unique_violation
from portfolio_api.errors import AppError, RateLimitExceededError
from portfolio_api.observability.logging import get_logger
from portfolio_api.settings import Settings
from portfolio_api.uploads.validation import UploadError, UploadErrorCode

log = get_logger(__name__)

GENERIC_MESSAGE = "Something went wrong"
INVALID_TOKEN_MESSAGE = "Invalid token. Please log in again."
EXPIRED_TOKEN_MESSAGE = "Your token has expired. Please log in again."
ROUTE_NOT_FOUND_MESSAGE = "Route not found"

# Location prefixes FastAPI puts in front of the actual field name.
_LOCATION_PREFIXES = frozenset({"body", "query", "path", "header", "cookie"})


class ErrorKind(enum.StrEnum):
    validation = "validation"
    duplicate_key = "duplicate_key"
    cast = "cast"
    invalid_token = "invalid_token"
    expired_token = "expired_token"
    upload = "upload"
    application = "application"
    http = "http"
    route_not_found = "route_not_found"
    unclassified = "unclassified"


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    message: str


@dataclass(frozen=True, slots=True)
class NormalizedError:
    kind: ErrorKind
    status_code: int
    status: str
    message: str
    errors: tuple[FieldError, ...] = ()
    field: str | None = None
    operational: bool = True
    headers: dict[str, str] = dataclass_field(default_factory=dict)


def status_for(status_code: int) -> str:
    return "fail" if 400 <= status_code < 500 else "error"


def _normalized(kind: ErrorKind, status_code: int, message: str, **extra: Any) -> NormalizedError:
    status = extra.pop("status", None) or status_for(status_code)
    return NormalizedError(kind=kind, status_code=status_code, status=status, message=message, **extra)


def _field_name(loc: tuple[Any, ...] | list[Any]) -> str:
    parts = [str(p) for p in loc]
    if len(parts) > 1 and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts) or "body"


def _duplicate_message(field_name: str, value: Any) -> str:
    if value is None:
        return f"Duplicate field value: {field_name} already exists"
    return f"Duplicate field value: {field_name} already exists with value {value}"


def classify(exc: BaseException) -> NormalizedError:
    """
    Map a raw fault to its normalized shape. First match wins.
    """

    # 1. Schema validation (request bodies / params and model validation in the data layer).
    if isinstance(exc, (RequestValidationError, ValidationError)):
        errors = tuple(
            FieldError(field=_field_name(e.get("loc", ())), message=str(e.get("msg", "Invalid value")))
            for e in exc.errors()
        )
        return _normalized(ErrorKind.validation, HTTP_400_BAD_REQUEST, "Validation error", errors=errors)

    # 2. Unique-key conflicts.
    if isinstance(exc, DuplicateKeyError):
        return _normalized(
            ErrorKind.duplicate_key,
            HTTP_400_BAD_REQUEST,
            _duplicate_message(exc.field, exc.value),
            field=exc.field,
        )
    if isinstance(exc, IntegrityError):
        key_value = unique_violation(exc)
        if key_value:
            field_name, value = next(iter(key_value.items()))
            return _normalized(
                ErrorKind.duplicate_key,
                HTTP_400_BAD_REQUEST,
                _duplicate_message(field_name, value),
                field=field_name,
            )

    # 3. Malformed identifiers.
    if isinstance(exc, InvalidIdentifierError):
        return _normalized(
            ErrorKind.cast, HTTP_400_BAD_REQUEST, f"Invalid {exc.field}: {exc.value}", field=exc.field
        )

    # 4./5. Token failures. TokenExpiredError subclasses JwtValidationError, so test it first.
    if isinstance(exc, TokenExpiredError):
        return _normalized(ErrorKind.expired_token, HTTP_401_UNAUTHORIZED, EXPIRED_TOKEN_MESSAGE)
    if isinstance(exc, JwtValidationError):
        return _normalized(ErrorKind.invalid_token, HTTP_401_UNAUTHORIZED, INVALID_TOKEN_MESSAGE)

    # 6. Upload failures render with status "error", like every upload rejection.
    if isinstance(exc, UploadError):
        if exc.code is UploadErrorCode.file_size:
            message = "File too large"
        elif exc.code is UploadErrorCode.unexpected_file:
            message = "Unexpected file field"
        else:
            message = exc.message or "File upload error"
        return _normalized(ErrorKind.upload, HTTP_400_BAD_REQUEST, message, status="error")

    # Explicit application errors raised by routes and pipeline stages.
    if isinstance(exc, AppError):
        headers: dict[str, str] = {}
        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)
        return _normalized(ErrorKind.application, exc.status_code, exc.message, headers=headers)

    # Framework errors: unmatched routes and method mismatches.
    if isinstance(exc, StarletteHTTPException):
        if exc.status_code == HTTP_404_NOT_FOUND:
            return _normalized(
                ErrorKind.route_not_found, HTTP_404_NOT_FOUND, ROUTE_NOT_FOUND_MESSAGE, status="error"
            )
        return _normalized(
            ErrorKind.http, exc.status_code, str(exc.detail), headers=dict(exc.headers or {})
        )

    # 7. Anything else is a programming or infrastructure fault. A stray `status_code`
    # attribute on a foreign exception is ignored.
    return _normalized(
        ErrorKind.unclassified,
        HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc) or type(exc).__name__,
        status="error",
        operational=False,
    )


def render(error: NormalizedError, exc: BaseException, *, verbose: bool) -> JSONResponse:
    """
    Build the client response. `verbose` echoes everything (dev only).
    """

    if verbose:
        body: dict[str, Any] = {
            "status": error.status,
            "error": {
                "name": type(exc).__name__,
                "kind": error.kind.value,
                "status_code": error.status_code,
                "operational": error.operational,
                "detail": str(exc),
            },
            "message": error.message,
            "stack": "".join(traceback.format_exception(exc)),
        }
        body.update(_field_payload(error))
        return JSONResponse(status_code=error.status_code, content=body, headers=error.headers)

    if not error.operational:
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "error", "message": GENERIC_MESSAGE},
        )

    body = {"status": error.status, "message": error.message}
    body.update(_field_payload(error))
    return JSONResponse(status_code=error.status_code, content=body, headers=error.headers)


def _field_payload(error: NormalizedError) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    if error.errors:
        payload["errors"] = [{"field": e.field, "message": e.message} for e in error.errors]
    if error.field is not None:
        payload["field"] = error.field
    return payload


def error_response(exc: BaseException, *, method: str, path: str, settings: Settings) -> JSONResponse:
    """
    Classify, log (method + path + message) and render one failure.
    """

    error = classify(exc)
    if error.operational:
        log.warning(
            "request_failed",
            http_method=method,
            url=path,
            status_code=error.status_code,
            kind=error.kind.value,
            error_message=error.message,
        )
    else:
        log.error(
            "unhandled_exception",
            http_method=method,
            url=path,
            status_code=error.status_code,
            error_message=error.message,
            exc_info=exc,
        )
    return render(error, exc, verbose=settings.env == "dev")


async def normalized_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return error_response(
        exc,
        method=request.method,
        path=request.url.path,
        settings=request.app.state.settings,
    )


HANDLED_ERRORS: tuple[type[Exception], ...] = (
    RequestValidationError,
    ValidationError,
    StarletteHTTPException,
    AppError,
    DuplicateKeyError,
    IntegrityError,
    InvalidIdentifierError,
    JwtValidationError,
    UploadError,
)


def register_error_handlers(app: FastAPI) -> None:
    """Route every recognised error type through the normalizer."""

    for exc_type in HANDLED_ERRORS:
        app.add_exception_handler(exc_type, normalized_error_handler)


class ErrorNormalizerMiddleware:
    """
    Terminal catch-all for faults no registered handler claimed.

    Added first (innermost) so it sits directly around routing, inside every other
    pipeline stage.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def _send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, _send)
        except Exception as exc:
            if response_started:
                # Headers are already on the wire; a second response is impossible.
                log.error("exception_after_response_started", url=scope["path"], exc_info=exc)
                raise
            response = error_response(
                exc,
                method=scope["method"],
                path=scope["path"],
                settings=scope["app"].state.settings,
            )
            await response(scope, receive, send)


# --- Module Notes -----------------------------------------------------------
# `classify` takes no request or settings; it is unit tested against raw
# exceptions.
