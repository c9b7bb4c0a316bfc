"""
portfolio_api.db.repositories.skills

Skill listing, ordered by `order` then name.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select

from portfolio_api.db.models import Skill
from portfolio_api.db.repositories.base import CrudRepo


class SkillRepo(CrudRepo[Skill]):
    model = Skill

    async def list_ordered(self) -> Sequence[Skill]:
        stmt = select(Skill).order_by(Skill.order.asc(), Skill.name.asc())
        return (await self._session.execute(stmt)).scalars().all()
