"""
portfolio_api.api.routers.health

Health and readiness endpoints (mounted at the root, outside /api).

Responsibilities:
- Liveness check (`/healthz`).
- Readiness check (`/readyz`): the database answers and the upload tree exists.
"""

from __future__ import annotations

import anyio
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_api.api.deps import db_session, upload_store_dep
from portfolio_api.uploads.store import UploadStore
from portfolio_api.uploads.validation import MediaKind

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz", response_model=None)
async def readyz(
    session: AsyncSession = Depends(db_session),
    store: UploadStore = Depends(upload_store_dep),
) -> dict[str, str] | JSONResponse:
    await session.execute(text("SELECT 1"))
    missing = [
        kind.directory for kind in MediaKind if not await anyio.Path(store.directory_for(kind)).is_dir()
    ]
    if missing:
        return JSONResponse(status_code=503, content={"status": "unavailable", "missing_upload_dirs": missing})
    return {"status": "ready"}
