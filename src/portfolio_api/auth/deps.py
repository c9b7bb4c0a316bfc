"""
portfolio_api.auth.deps

FastAPI dependency functions for authentication.

Responsibilities:
- Read the `x-auth-token` credential header.
- Convert a valid token into a typed `Principal` attached to the request.
- Leave classification of token failures to the error normalizer.
"""

from __future__ import annotations

import structlog
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from portfolio_api.api.deps import settings_dep
from portfolio_api.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from portfolio_api.auth.models import Principal
from portfolio_api.errors import AuthenticationRequiredError
from portfolio_api.settings import Settings

TOKEN_HEADER = "x-auth-token"

_token_header = APIKeyHeader(name=TOKEN_HEADER, auto_error=False)


async def get_principal(
    request: Request,
    token: str | None = Depends(_token_header),
    settings: Settings = Depends(settings_dep),
) -> Principal:
    # Authn: an absent header is a different failure from a bad token.
    if token is None or not token.strip():
        raise AuthenticationRequiredError()

    # Raises JwtValidationError / TokenExpiredError; the normalizer renders both.
    payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=token.strip())

    subject = str(payload.get("sub", ""))
    if not subject:
        raise JwtValidationError("Token has an empty subject")

    principal = Principal(subject=subject)
    request.state.principal = principal
    structlog.contextvars.bind_contextvars(subject=subject)
    return principal


# --- Module Notes -----------------------------------------------------------
# Used as `Depends(get_principal)` on every admin-only route.
