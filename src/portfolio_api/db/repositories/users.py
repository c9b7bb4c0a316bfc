"""
portfolio_api.db.repositories.users

Repository for the admin `User`.

Responsibilities:
- Look up the admin by login email (case-insensitive) or by token subject.
- Create the admin account with an already-hashed password.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select

from portfolio_api.db.models import User
from portfolio_api.db.repositories.base import CrudRepo


class UserRepo(CrudRepo[User]):
    model = User

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email.strip().lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_subject(self, subject: str) -> User | None:
        # Token subjects were issued by us; a malformed one simply matches nobody.
        try:
            user_id = uuid.UUID(subject)
        except ValueError:
            return None
        return await self._session.get(User, user_id)

    async def create_admin(self, *, email: str, password_hash: str) -> User:
        return await self.create({"email": email.strip().lower(), "password_hash": password_hash})
