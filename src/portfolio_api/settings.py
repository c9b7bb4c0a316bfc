"""
portfolio_api.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Validate everything at load time so a bad deployment aborts before serving.
- Hide secrets from repr/logging (e.g., JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

import re
from datetime import timedelta
from functools import lru_cache
from typing import Any, Literal
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Origins of the local Vite dev server; never allowed in prod.
DEV_ORIGINS: tuple[str, ...] = ("http://localhost:5173", "http://127.0.0.1:5173")

DATABASE_SCHEMES: tuple[str, ...] = ("sqlite+aiosqlite://", "postgresql+asyncpg://")

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd])\s*$")
_DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


class Settings(BaseSettings):
    """
    Loaded once at process start and never mutated afterwards:
    - Strict env-driven configuration (prefix PORTFOLIO_)
    - Required values have no defaults, so missing ones fail fast
    - Single settings object stored on app.state and injected across layers
    """

    model_config = SettingsConfigDict(
        env_prefix="PORTFOLIO_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    # Environment controls error verbosity, CORS dev origins and auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "portfolio-api"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = Field(default=5000, ge=1, le=65535)

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "portfolio-api"
    jwt_audience: str = "portfolio-web"
    jwt_secret: str = Field(min_length=32, repr=False)
    jwt_expires_in: timedelta = timedelta(hours=12)

    # Browser origin of the portfolio frontend.
    client_url: str

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./portfolio.db"
    db_retry_delay_seconds: float = Field(default=5.0, gt=0)

    # Request pipeline
    upload_dir: str = "uploads"
    max_body_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    rate_limit_api: str = "100/15minutes"
    rate_limit_login: str = "5/15minutes"

    @field_validator("jwt_expires_in", mode="before")
    @classmethod
    def _parse_short_duration(cls, value: Any) -> Any:
        # Accept bare seconds and the "12h" / "30m" shorthand in addition to ISO 8601.
        if isinstance(value, str):
            if value.strip().isdigit():
                return timedelta(seconds=int(value))
            match = _DURATION_RE.match(value)
            if match:
                amount, unit = match.groups()
                return timedelta(**{_DURATION_UNITS[unit]: int(amount)})
        return value

    @field_validator("jwt_expires_in")
    @classmethod
    def _positive_duration(cls, value: timedelta) -> timedelta:
        if value.total_seconds() <= 0:
            raise ValueError("jwt_expires_in must be positive")
        return value

    @field_validator("database_url")
    @classmethod
    def _check_database_scheme(cls, value: str) -> str:
        if not value.startswith(DATABASE_SCHEMES):
            raise ValueError(f"database_url must start with one of {', '.join(DATABASE_SCHEMES)}")
        return value

    @field_validator("client_url")
    @classmethod
    def _check_client_url(cls, value: str) -> str:
        parts = urlsplit(value.strip())
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError("client_url must be an absolute http(s) URL")
        # Browsers send the Origin header without a trailing slash.
        return f"{parts.scheme}://{parts.netloc}"

    @property
    def is_production(self) -> bool:
        return self.env == "prod"

    @property
    def allowed_origins(self) -> tuple[str, ...]:
        if self.is_production:
            return (self.client_url,)
        return (self.client_url, *DEV_ORIGINS)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars; the instance is frozen so sharing it is safe.
    return Settings()  # type: ignore[call-arg]


# --- Module Notes -----------------------------------------------------------
# Token lifetime is read only from `jwt_expires_in`; the login route never
# hard-codes its own expiry.
