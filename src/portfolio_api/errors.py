"""
portfolio_api.errors

Application error hierarchy.

Responsibilities:
- Give routes and pipeline stages typed, user-facing ("operational") errors.
- Carry the HTTP status and message the error normalizer renders.

Errors raised by other layers (DB duplicate keys, malformed ids, token and upload
failures) live next to the code that raises them; the normalizer in
`portfolio_api.api.errors` knows how to classify all of them.
"""

from __future__ import annotations

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    HTTP_429_TOO_MANY_REQUESTS,
)


class AppError(Exception):
    """
    An anticipated failure whose message is safe to show to clients.
    """

    status_code: int = HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(AppError):
    status_code = HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    status_code = HTTP_404_NOT_FOUND

    def __init__(self, resource: str) -> None:
        super().__init__(f"{resource} not found")
        self.resource = resource


class AuthenticationRequiredError(AppError):
    status_code = HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Authentication required. No token provided.") -> None:
        super().__init__(message)


class CorsOriginError(AppError):
    status_code = HTTP_403_FORBIDDEN

    def __init__(self, origin: str) -> None:
        super().__init__(f"Origin {origin} not allowed by CORS")
        self.origin = origin


class PayloadTooLargeError(AppError):
    status_code = HTTP_413_REQUEST_ENTITY_TOO_LARGE

    def __init__(self, limit: int) -> None:
        super().__init__(f"Request body exceeds the {limit} byte limit")
        self.limit = limit


class RateLimitExceededError(AppError):
    status_code = HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, message: str, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after
