"""
tests.conftest

Shared fixtures: a fully started app on a throwaway SQLite file, an httpx client
bound to it, and an admin account with a valid token.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from portfolio_api.api.app import create_app
from portfolio_api.auth.jwt import JwtConfig, issue_token
from portfolio_api.auth.passwords import hash_password
from portfolio_api.db.repositories import UserRepo
from portfolio_api.settings import Settings

JWT_SECRET = "test-secret-that-is-at-least-32-characters-long"
CLIENT_URL = "https://portfolio.example.com"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Sup3r$ecret"

# A 1x1 transparent PNG.
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000001e221bc330000000049454e44ae426082"
)
PDF_BYTES = b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n"


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "env": "test",
            "jwt_secret": JWT_SECRET,
            "client_url": CLIENT_URL,
            "database_url": f"sqlite+aiosqlite:///{tmp_path / 'portfolio.db'}",
            "upload_dir": str(tmp_path / "uploads"),
            "rate_limit_api": "10000/15minutes",
            "rate_limit_login": "1000/15minutes",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)  # type: ignore[call-arg]

    return _make


@pytest.fixture
def settings(make_settings: Callable[..., Settings]) -> Settings:
    return make_settings()


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings=settings)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    # httpx ASGITransport does not manage lifespan automatically; do it explicitly.
    await app.router.startup()
    try:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    finally:
        await app.router.shutdown()


@pytest_asyncio.fixture
async def admin(app: FastAPI, client: httpx.AsyncClient) -> str:
    """Create the admin account; returns its id."""

    async with app.state.sessionmaker() as session:
        user = await UserRepo(session).create_admin(
            email=ADMIN_EMAIL, password_hash=hash_password(ADMIN_PASSWORD)
        )
        await session.commit()
        return str(user.id)


@pytest.fixture
def auth_headers(settings: Settings, admin: str) -> dict[str, str]:
    issued = issue_token(cfg=JwtConfig.from_settings(settings), subject=admin)
    return {"x-auth-token": issued.token}


def uploaded_files(root: str | Path) -> list[Path]:
    return sorted(p for p in Path(root).rglob("*") if p.is_file())


@pytest.fixture
def admin_credentials() -> dict[str, str]:
    return {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def pdf_bytes() -> bytes:
    return PDF_BYTES


@pytest.fixture
def stored_files(settings: Settings) -> Callable[[], list[Path]]:
    """Lists every file currently under the upload root."""

    return lambda: uploaded_files(settings.upload_dir)
