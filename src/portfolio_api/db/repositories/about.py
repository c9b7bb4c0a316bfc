"""
portfolio_api.db.repositories.about

Single-row access to the About section (`first` / `upsert`).
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select

from portfolio_api.db.models import About
from portfolio_api.db.repositories.base import CrudRepo


class AboutRepo(CrudRepo[About]):
    model = About

    async def first(self) -> About | None:
        stmt = select(About).limit(1)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def upsert(self, changes: dict[str, Any]) -> About:
        about = await self.first()
        if about is None:
            return await self.create(changes)
        return await self.update(about, changes)
