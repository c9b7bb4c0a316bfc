"""
portfolio_api.db.repositories.base

Shared create/read/update/delete plumbing for document-style resources.

Responsibilities:
- Look rows up by (validated) identifier.
- Apply partial updates attribute by attribute.
- Turn unique-constraint violations into `DuplicateKeyError`.
"""

from __future__ import annotations

from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_api.db.base import Base
from portfolio_api.db.errors import DuplicateKeyError, parse_id, unique_violation

ModelT = TypeVar("ModelT", bound=Base)


class CrudRepo(Generic[ModelT]):
    model: ClassVar[type[Base]]

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, raw_id: str) -> ModelT | None:
        # Malformed ids raise InvalidIdentifierError instead of returning None.
        return await self._session.get(self.model, parse_id(raw_id))  # type: ignore[return-value]

    async def create(self, values: dict[str, Any]) -> ModelT:
        obj = self.model(**values)
        self._session.add(obj)
        await self._flush(obj)
        return obj  # type: ignore[return-value]

    async def update(self, obj: ModelT, changes: dict[str, Any]) -> ModelT:
        # Assigning an equal value is not a change; identical bodies leave the row untouched.
        for key, value in changes.items():
            setattr(obj, key, value)
        await self._flush(obj)
        return obj

    async def delete(self, obj: ModelT) -> None:
        await self._session.delete(obj)
        await self._session.flush()

    async def _flush(self, obj: ModelT) -> None:
        try:
            await self._session.flush()
        except IntegrityError as e:
            await self._session.rollback()
            key_value = unique_violation(e)
            if key_value is None:
                raise
            # Fill in the conflicting value from the entity when the driver omits it.
            key_value = {k: (v if v is not None else getattr(obj, k, None)) for k, v in key_value.items()}
            raise DuplicateKeyError(key_value) from e


# --- Module Notes -----------------------------------------------------------
# Commit is left to the route so one request maps to one transaction.
