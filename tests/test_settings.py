from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from portfolio_api.settings import DEV_ORIGINS, Settings

SECRET = "s" * 32


def _settings(**values) -> Settings:
    values.setdefault("jwt_secret", SECRET)
    values.setdefault("client_url", "https://example.com")
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PORTFOLIO_JWT_SECRET", "PORTFOLIO_CLIENT_URL", "PORTFOLIO_ENV", "PORTFOLIO_DATABASE_URL"):
        monkeypatch.delenv(name, raising=False)


def test_jwt_secret_is_required() -> None:
    with pytest.raises(ValidationError) as exc_info:
        Settings(_env_file=None, client_url="https://example.com")  # type: ignore[call-arg]
    assert any(e["loc"] == ("jwt_secret",) for e in exc_info.value.errors())


def test_client_url_is_required() -> None:
    with pytest.raises(ValidationError) as exc_info:
        Settings(_env_file=None, jwt_secret=SECRET)  # type: ignore[call-arg]
    assert any(e["loc"] == ("client_url",) for e in exc_info.value.errors())


def test_short_jwt_secret_is_rejected() -> None:
    with pytest.raises(ValidationError):
        _settings(jwt_secret="too-short")


def test_secret_is_hidden_from_repr() -> None:
    assert SECRET not in repr(_settings())


def test_values_are_read_from_the_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORTFOLIO_JWT_SECRET", SECRET)
    monkeypatch.setenv("PORTFOLIO_CLIENT_URL", "https://me.example.org")
    monkeypatch.setenv("PORTFOLIO_ENV", "prod")

    settings = Settings(_env_file=None)  # type: ignore[call-arg]

    assert settings.env == "prod"
    assert settings.client_url == "https://me.example.org"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("12h", timedelta(hours=12)),
        ("30m", timedelta(minutes=30)),
        ("7d", timedelta(days=7)),
        ("PT1H", timedelta(hours=1)),
        ("3600", timedelta(hours=1)),
    ],
)
def test_jwt_expiry_shorthand(raw: str, expected: timedelta) -> None:
    assert _settings(jwt_expires_in=raw).jwt_expires_in == expected


def test_default_jwt_expiry_is_twelve_hours() -> None:
    assert _settings().jwt_expires_in == timedelta(hours=12)


def test_non_positive_jwt_expiry_is_rejected() -> None:
    with pytest.raises(ValidationError):
        _settings(jwt_expires_in="0s")


def test_client_url_is_normalized_to_an_origin() -> None:
    assert _settings(client_url="https://example.com/some/path/").client_url == "https://example.com"


def test_relative_client_url_is_rejected() -> None:
    with pytest.raises(ValidationError):
        _settings(client_url="example.com")


def test_unsupported_database_scheme_is_rejected() -> None:
    with pytest.raises(ValidationError):
        _settings(database_url="mysql://localhost/portfolio")


def test_dev_origins_are_only_allowed_outside_prod() -> None:
    assert set(DEV_ORIGINS) <= set(_settings(env="dev").allowed_origins)
    assert _settings(env="prod").allowed_origins == ("https://example.com",)


def test_settings_are_frozen() -> None:
    settings = _settings()
    with pytest.raises(ValidationError):
        settings.env = "prod"  # type: ignore[misc]
