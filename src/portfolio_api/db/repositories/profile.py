"""
portfolio_api.db.repositories.profile

Singleton profile document. Reading an empty table seeds a placeholder profile so
the public site always has something to render.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select

from portfolio_api.db.models import Profile
from portfolio_api.db.repositories.base import CrudRepo

DEFAULT_PROFILE: dict[str, Any] = {
    "name": "Your Name",
    "title": "Web Developer",
    "bio": "A passionate web developer with experience in modern web technologies.",
    "email": "your.email@example.com",
    "phone": "+1 (123) 456-7890",
    "social": {
        "github": "https://github.com/",
        "linkedin": "https://linkedin.com/in/",
        "twitter": "https://twitter.com/",
        "instagram": "https://instagram.com/",
    },
}


class ProfileRepo(CrudRepo[Profile]):
    model = Profile

    async def first(self) -> Profile | None:
        stmt = select(Profile).order_by(Profile.created_at.asc()).limit(1)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_or_create_default(self) -> tuple[Profile, bool]:
        profile = await self.first()
        if profile is not None:
            return profile, False
        return await self.create(dict(DEFAULT_PROFILE)), True

    async def upsert(self, changes: dict[str, Any]) -> Profile:
        profile = await self.first()
        if profile is None:
            return await self.create({**DEFAULT_PROFILE, **changes})
        return await self.update(profile, changes)
