"""
portfolio_api.db.session

Async SQLAlchemy engine + session factory helpers.

Responsibilities:
- Create the async engine from settings.
- Create the async sessionmaker with safe defaults.
- Wait for the database at startup, retrying on a fixed delay.
"""

from __future__ import annotations

import asyncio

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from portfolio_api.observability.logging import get_logger
from portfolio_api.settings import Settings

log = get_logger(__name__)


def create_engine(settings: Settings) -> AsyncEngine:
    # pool_pre_ping helps detect stale connections in long-lived processes.
    return create_async_engine(
        settings.database_url,
        pool_pre_ping=True,
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False avoids surprising lazy loads after commits.
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )


async def connect_with_retry(engine: AsyncEngine, *, delay_seconds: float) -> int:
    """
    Block until the database answers `SELECT 1`.

    Retries forever with a constant delay; returns the number of failed attempts.
    """

    attempts = 0
    while True:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (OSError, SQLAlchemyError) as e:
            attempts += 1
            log.error(
                "db_connect_failed",
                attempt=attempts,
                retry_in_seconds=delay_seconds,
                error=str(e),
            )
            await asyncio.sleep(delay_seconds)
            continue
        log.info("db_connected", failed_attempts=attempts)
        return attempts


# --- Module Notes -----------------------------------------------------------
# The API layer uses FastAPI dependencies for session scoping (`api.deps.db_session`).
