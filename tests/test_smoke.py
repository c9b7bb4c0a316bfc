"""
tests.test_smoke

Minimal smoke tests to validate the service can boot and serve core endpoints.

Responsibilities:
- Ensure the FastAPI app starts and DB readiness check works in test mode.
- Ensure the API answers under both the versioned and the unversioned prefix.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from portfolio_api.settings import Settings


@pytest.mark.asyncio
async def test_health_endpoints(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

    r = await client.get("/readyz")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_api_is_served_under_both_prefixes(client: httpx.AsyncClient) -> None:
    for prefix in ("/api/v1", "/api"):
        r = await client.get(f"{prefix}/skills")
        assert r.status_code == 200
        assert r.json() == {"status": "success", "data": []}


@pytest.mark.asyncio
async def test_openapi_lists_only_versioned_routes(client: httpx.AsyncClient) -> None:
    r = await client.get("/openapi.json")
    assert r.status_code == 200
    paths = r.json()["paths"]
    assert "/api/v1/projects" in paths
    assert "/api/projects" not in paths


# --- Module Notes -----------------------------------------------------------
# Resource behavior is covered in test_projects.py and test_resources.py.


@pytest.mark.asyncio
async def test_readiness_fails_when_an_upload_directory_is_missing(
    client: httpx.AsyncClient, settings: Settings
) -> None:
    (Path(settings.upload_dir) / "documents").rmdir()

    r = await client.get("/readyz")

    assert r.status_code == 503
    assert r.json() == {"status": "unavailable", "missing_upload_dirs": ["documents"]}
