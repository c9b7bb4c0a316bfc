"""
portfolio_api.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Expose the per-app singletons (settings, sessionmaker, upload store) to routes.
- Yield one DB session per request.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio_api.settings import Settings
from portfolio_api.uploads.store import UploadStore


def settings_dep(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[no-any-return]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # Only present after the startup hook has connected to the database.
    return request.app.state.sessionmaker  # type: ignore[no-any-return]


def upload_store_dep(request: Request) -> UploadStore:
    return request.app.state.upload_store  # type: ignore[no-any-return]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Routes commit explicitly after writes; anything uncommitted is rolled back on close.
    async with session_factory() as session:
        yield session


# --- Module Notes -----------------------------------------------------------
# Everything on app.state is built once by `create_app`; nothing here creates
# resources of its own.
