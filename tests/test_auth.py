from __future__ import annotations

from datetime import UTC, datetime, timedelta

import httpx
import pytest

from portfolio_api.auth.jwt import (
    JwtConfig,
    JwtValidationError,
    TokenExpiredError,
    decode_and_validate,
    issue_token,
)
from portfolio_api.auth.passwords import hash_password, verify_password
from portfolio_api.settings import Settings


def test_issued_token_round_trips(settings: Settings) -> None:
    cfg = JwtConfig.from_settings(settings)
    issued = issue_token(cfg=cfg, subject="user-1")

    claims = decode_and_validate(cfg=cfg, token=issued.token)

    assert claims["sub"] == "user-1"
    assert claims["exp"] - claims["iat"] == int(settings.jwt_expires_in.total_seconds())
    assert issued.expires_in == settings.jwt_expires_in


def test_expired_token_raises_expired(settings: Settings) -> None:
    cfg = JwtConfig.from_settings(settings)
    issued = issue_token(cfg=cfg, subject="user-1", now=datetime.now(tz=UTC) - timedelta(days=2))

    with pytest.raises(TokenExpiredError):
        decode_and_validate(cfg=cfg, token=issued.token)


def test_token_signed_with_another_secret_is_invalid(settings: Settings) -> None:
    cfg = JwtConfig.from_settings(settings)
    other = JwtConfig.from_settings(settings.model_copy(update={"jwt_secret": "x" * 40}))
    issued = issue_token(cfg=other, subject="user-1")

    with pytest.raises(JwtValidationError) as exc_info:
        decode_and_validate(cfg=cfg, token=issued.token)
    assert not isinstance(exc_info.value, TokenExpiredError)


def test_password_hashing() -> None:
    hashed = hash_password("Sup3r$ecret")

    assert hashed != "Sup3r$ecret"
    assert verify_password("Sup3r$ecret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("Sup3r$ecret", "not-a-bcrypt-hash")


@pytest.mark.asyncio
async def test_missing_token_requires_authentication(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/v1/auth/user")

    assert r.status_code == 401
    assert r.json() == {"status": "fail", "message": "Authentication required. No token provided."}


@pytest.mark.asyncio
async def test_blank_token_counts_as_missing(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/v1/auth/user", headers={"x-auth-token": "   "})

    assert r.status_code == 401
    assert r.json()["message"] == "Authentication required. No token provided."


@pytest.mark.asyncio
async def test_garbage_token_is_invalid(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/v1/auth/user", headers={"x-auth-token": "not.a.jwt"})

    assert r.status_code == 401
    assert r.json() == {"status": "fail", "message": "Invalid token. Please log in again."}


@pytest.mark.asyncio
async def test_expired_token_is_reported_as_expired(
    client: httpx.AsyncClient, settings: Settings, admin: str
) -> None:
    issued = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=admin,
        now=datetime.now(tz=UTC) - timedelta(days=2),
    )

    r = await client.get("/api/v1/auth/user", headers={"x-auth-token": issued.token})

    assert r.status_code == 401
    assert r.json()["message"] == "Your token has expired. Please log in again."


@pytest.mark.asyncio
async def test_login_returns_token_and_expiry(
    client: httpx.AsyncClient, admin: str, admin_credentials: dict[str, str], settings: Settings
) -> None:
    r = await client.post("/api/v1/auth/login", json=admin_credentials)

    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "success"
    assert body["expires_in"] == int(settings.jwt_expires_in.total_seconds())

    r = await client.get("/api/v1/auth/user", headers={"x-auth-token": body["token"]})
    assert r.status_code == 200
    user = r.json()["data"]
    assert user["id"] == admin
    assert user["email"] == admin_credentials["email"]
    assert "password_hash" not in user
    assert "password" not in user


@pytest.mark.asyncio
async def test_login_email_is_case_insensitive(
    client: httpx.AsyncClient, admin: str, admin_credentials: dict[str, str]
) -> None:
    r = await client.post(
        "/api/v1/auth/login",
        json={"email": admin_credentials["email"].upper(), "password": admin_credentials["password"]},
    )

    assert r.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "credentials",
    [
        {"email": "admin@example.com", "password": "wrong-password"},
        {"email": "nobody@example.com", "password": "Sup3r$ecret"},
    ],
)
async def test_bad_credentials_share_one_message(
    client: httpx.AsyncClient, admin: str, credentials: dict[str, str]
) -> None:
    r = await client.post("/api/v1/auth/login", json=credentials)

    assert r.status_code == 400
    assert r.json() == {"status": "fail", "message": "Invalid credentials"}


@pytest.mark.asyncio
async def test_login_validation(client: httpx.AsyncClient) -> None:
    r = await client.post("/api/v1/auth/login", json={"email": "not-an-email"})

    assert r.status_code == 400
    body = r.json()
    assert body["message"] == "Validation error"
    assert {e["field"] for e in body["errors"]} == {"email", "password"}


@pytest.mark.asyncio
async def test_change_password(
    client: httpx.AsyncClient, auth_headers: dict[str, str], admin_credentials: dict[str, str]
) -> None:
    r = await client.put(
        "/api/v1/auth/password",
        headers=auth_headers,
        json={"current_password": admin_credentials["password"], "new_password": "weakpass"},
    )
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "new_password"

    r = await client.put(
        "/api/v1/auth/password",
        headers=auth_headers,
        json={"current_password": "not-it", "new_password": "N3w$ecret!"},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Current password is incorrect"

    r = await client.put(
        "/api/v1/auth/password",
        headers=auth_headers,
        json={"current_password": admin_credentials["password"], "new_password": "N3w$ecret"},
    )
    assert r.status_code == 200

    r = await client.post(
        "/api/v1/auth/login", json={"email": admin_credentials["email"], "password": "N3w$ecret"}
    )
    assert r.status_code == 200
