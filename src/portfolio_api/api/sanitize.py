"""
portfolio_api.api.sanitize

Input sanitization helpers used by the request pipeline.

Responsibilities:
- Drop operator-injection keys (`$`-prefixed or dotted) from parsed input.
- Neutralize script injection by escaping angle brackets in string values.
- Collapse repeated query parameters, except for a whitelist.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any
from urllib.parse import parse_qsl, urlencode

# Query parameters that may legitimately repeat (pagination/sort/filter).
REPEATABLE_PARAMS: frozenset[str] = frozenset({"order", "featured", "limit", "page", "sort"})


def is_operator_key(key: str) -> bool:
    # "$gt", "a.b" and bracketed forms like "filter[$ne]".
    return key.startswith("$") or "[$" in key or "." in key


def escape_markup(value: str) -> str:
    return value.replace("<", "&lt;").replace(">", "&gt;")


def sanitize_value(value: Any) -> Any:
    """Recursively clean a parsed JSON value."""

    if isinstance(value, dict):
        return {k: sanitize_value(v) for k, v in value.items() if not is_operator_key(str(k))}
    if isinstance(value, list):
        return [sanitize_value(v) for v in value]
    if isinstance(value, str):
        return escape_markup(value)
    return value


def sanitize_pairs(pairs: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    return [(k, escape_markup(v)) for k, v in pairs if not is_operator_key(k)]


def sanitize_query_string(raw: bytes) -> bytes:
    pairs = parse_qsl(raw.decode("latin-1"), keep_blank_values=True)
    return urlencode(sanitize_pairs(pairs)).encode("latin-1")


def collapse_pairs(
    pairs: Iterable[tuple[str, str]], whitelist: frozenset[str] = REPEATABLE_PARAMS
) -> list[tuple[str, str]]:
    """
    Keep only the last value of every repeated key not in `whitelist`.
    Surviving pairs keep their relative order.
    """

    pairs = list(pairs)
    last_index: dict[str, int] = {}
    for i, (key, _) in enumerate(pairs):
        last_index[key] = i
    return [(k, v) for i, (k, v) in enumerate(pairs) if k in whitelist or last_index[k] == i]


def collapse_query_string(raw: bytes, whitelist: frozenset[str] = REPEATABLE_PARAMS) -> bytes:
    pairs = parse_qsl(raw.decode("latin-1"), keep_blank_values=True)
    return urlencode(collapse_pairs(pairs, whitelist)).encode("latin-1")
