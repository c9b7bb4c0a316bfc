"""
portfolio_api.auth.jwt

JWT issuing and validation helpers.

Responsibilities:
- Issue signed, time-bound admin tokens at login.
- Decode and validate tokens with strict claim requirements (iss/aud/exp/iat/sub).
- Keep "expired" distinguishable from every other validation failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError

from portfolio_api.settings import Settings


@dataclass(frozen=True, slots=True)
class JwtConfig:
    # Algorithm/issuer/audience are enforced during decoding.
    alg: str
    issuer: str
    audience: str
    secret: str
    ttl: timedelta

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            alg=settings.jwt_alg,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
            ttl=settings.jwt_expires_in,
        )


class JwtValidationError(Exception):
    """Malformed token, bad signature or wrong registered claims."""


class TokenExpiredError(JwtValidationError):
    """Signature is valid but `exp` is in the past."""


@dataclass(frozen=True, slots=True)
class IssuedToken:
    token: str
    expires_in: timedelta


def issue_token(*, cfg: JwtConfig, subject: str, now: datetime | None = None) -> IssuedToken:
    now = now or datetime.now(tz=UTC)
    payload: dict[str, Any] = {
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + cfg.ttl).timestamp()),
    }
    return IssuedToken(token=jwt.encode(payload, cfg.secret, algorithm=cfg.alg), expires_in=cfg.ttl)


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        # jwt.decode enforces signature + registered claims (issuer/audience/exp, etc.).
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={
                "require": ["exp", "iat", "iss", "aud", "sub"],
            },
        )
    except ExpiredSignatureError as e:
        raise TokenExpiredError(str(e)) from e
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e


# --- Module Notes -----------------------------------------------------------
# Tokens are stateless: there is no revocation list, only expiry.
