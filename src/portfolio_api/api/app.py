"""
portfolio_api.api.app

FastAPI app factory for the portfolio API.

Responsibilities:
- Build the FastAPI application, install the request pipeline and register routers.
- Initialize and dispose shared infrastructure (DB engine/session factory, upload store).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from portfolio_api import __version__
from portfolio_api.api.errors import register_error_handlers
from portfolio_api.api.pipeline import install_pipeline
from portfolio_api.api.routers import api_router
from portfolio_api.api.routers.health import router as health_router
from portfolio_api.db.init_db import init_db
from portfolio_api.db.session import connect_with_retry, create_engine, create_sessionmaker
from portfolio_api.observability.logging import configure_logging, get_logger
from portfolio_api.settings import Settings
from portfolio_api.uploads.store import UPLOAD_URL_PREFIX, ScanHook, UploadStore

log = get_logger(__name__)

API_PREFIX = "/api/v1"
LEGACY_API_PREFIX = "/api"


def create_app(*, settings: Settings, scan_hook: ScanHook | None = None) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    app = FastAPI(
        title="Portfolio API",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings

    # Upload directories are created once here, not per request.
    store = UploadStore(settings.upload_dir, scan_hook=scan_hook)
    store.ensure_directories()
    app.state.upload_store = store

    register_error_handlers(app)
    install_pipeline(app, settings)

    app.include_router(health_router)
    app.include_router(api_router, prefix=API_PREFIX)
    app.include_router(api_router, prefix=LEGACY_API_PREFIX, include_in_schema=False)
    app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=store.root), name="uploads")

    @app.on_event("startup")
    async def _startup() -> None:
        log.info("startup", env=settings.env, allowed_origins=list(settings.allowed_origins))
        # Create the async DB engine and session factory once and stash them on app.state.
        # Routers obtain sessions via dependencies (see `portfolio_api.api.deps`).
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        await connect_with_retry(engine, delay_seconds=settings.db_retry_delay_seconds)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically.
            await init_db(engine)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        # Dispose the engine to close pools/FDs gracefully.
        engine = getattr(app.state, "engine", None)
        if engine is not None:
            await engine.dispose()
        log.info("shutdown")

    return app


# --- Module Notes -----------------------------------------------------------
# Routes are served under both /api/v1 and the unversioned /api; only the
# versioned copy appears in the OpenAPI schema.
