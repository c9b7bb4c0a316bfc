"""
portfolio_api.db.errors

Data-layer errors recognised by the error normalizer.

Responsibilities:
- Represent unique-key conflicts with the offending field and value.
- Represent malformed identifiers (the "cast" failure of a path parameter).
- Parse identifiers and unique-violation messages from the supported drivers.
"""

from __future__ import annotations

import re
import uuid
from typing import Any

from sqlalchemy.exc import IntegrityError

# sqlite: "UNIQUE constraint failed: skills.name"
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: \w+\.(\w+)")
# postgres: 'DETAIL:  Key (name)=(Python) already exists.'
_POSTGRES_UNIQUE = re.compile(r"Key \((\w+)\)=\((.*)\) already exists")


class DuplicateKeyError(Exception):
    def __init__(self, key_value: dict[str, Any]) -> None:
        self.key_value = dict(key_value)
        super().__init__(f"Duplicate key: {self.key_value}")

    @property
    def field(self) -> str:
        return next(iter(self.key_value), "unknown")

    @property
    def value(self) -> Any:
        return self.key_value.get(self.field)


class InvalidIdentifierError(Exception):
    def __init__(self, field: str, value: Any) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {value}")


def parse_id(value: str, *, field: str = "id") -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError) as e:
        raise InvalidIdentifierError(field, value) from e


def unique_violation(exc: IntegrityError) -> dict[str, Any] | None:
    """
    Return `{field: value}` for a unique-constraint violation, `None` otherwise.
    The value is `None` when the driver does not report it (sqlite).
    """

    message = str(exc.orig) if exc.orig is not None else str(exc)
    match = _POSTGRES_UNIQUE.search(message)
    if match:
        return {match.group(1): match.group(2)}
    match = _SQLITE_UNIQUE.search(message)
    if match:
        return {match.group(1): None}
    return None
