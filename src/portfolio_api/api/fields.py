"""
portfolio_api.api.fields

Reusable annotated field types for request models.
"""

from __future__ import annotations

from typing import Annotated, Any
from urllib.parse import urlsplit

from pydantic import AfterValidator, BeforeValidator

MAX_URL_LENGTH = 512


def _blank_to_none(value: Any) -> Any:
    # Empty strings from HTML forms mean "not set".
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _check_http_url(value: str | None) -> str | None:
    if value is None:
        return None
    if len(value) > MAX_URL_LENGTH:
        raise ValueError(f"must be at most {MAX_URL_LENGTH} characters")
    parts = urlsplit(value)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError("must be a valid URL")
    return value


OptionalUrl = Annotated[
    str | None,
    BeforeValidator(_blank_to_none),
    AfterValidator(_check_http_url),
]


def reject_null(value: Any) -> Any:
    """For partial updates: a field may be omitted but not explicitly nulled."""

    if value is None:
        raise ValueError("may not be null")
    return value
