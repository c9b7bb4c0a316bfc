"""
portfolio_api.db.init_db

Schema bootstrap for dev and test runs.

Responsibilities:
- Create the portfolio tables (users, projects, skills, testimonials, profiles, about)
  when they do not exist yet.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from portfolio_api.db import models  # noqa: F401  # registers tables on Base.metadata
from portfolio_api.db.base import Base
from portfolio_api.observability.logging import get_logger

log = get_logger(__name__)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("db_schema_ready", tables=sorted(Base.metadata.tables))


# --- Module Notes -----------------------------------------------------------
# Production databases are expected to be provisioned ahead of time; `create_app`
# only calls this outside prod.
