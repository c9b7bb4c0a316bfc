"""
portfolio_api.db.repositories.projects

Project queries: ordered listing with an optional featured filter and a simple
case-insensitive search over title, description and technologies.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.sql.elements import ColumnElement

from portfolio_api.db.models import Project
from portfolio_api.db.repositories.base import CrudRepo


class ProjectRepo(CrudRepo[Project]):
    model = Project

    async def page(
        self, *, featured: bool | None = None, offset: int = 0, limit: int = 10
    ) -> tuple[Sequence[Project], int]:
        filters: list[ColumnElement[bool]] = []
        if featured is not None:
            filters.append(Project.featured.is_(featured))
        return await self._page(filters, offset=offset, limit=limit)

    async def search(self, query: str, *, offset: int = 0, limit: int = 10) -> tuple[Sequence[Project], int]:
        pattern = f"%{query.strip()}%"
        match = or_(
            Project.title.ilike(pattern),
            Project.description.ilike(pattern),
            cast(Project.technologies, String).ilike(pattern),
        )
        return await self._page([match], offset=offset, limit=limit)

    async def _page(
        self, filters: list[ColumnElement[bool]], *, offset: int, limit: int
    ) -> tuple[Sequence[Project], int]:
        stmt = (
            select(Project)
            .where(*filters)
            .order_by(Project.order.asc(), Project.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        total = (
            await self._session.execute(select(func.count()).select_from(Project).where(*filters))
        ).scalar_one()
        return rows, total
