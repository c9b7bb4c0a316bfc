"""
portfolio_api.api.routers.auth

Admin authentication endpoints.

Responsibilities:
- Exchange admin credentials for a signed token (login).
- Return the current admin and change the admin password.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_api.api.deps import db_session, settings_dep
from portfolio_api.api.responses import success
from portfolio_api.auth.deps import get_principal
from portfolio_api.auth.jwt import JwtConfig, issue_token
from portfolio_api.auth.models import Principal
from portfolio_api.auth.passwords import PASSWORD_POLICY, hash_password, verify_password
from portfolio_api.db.repositories import UserRepo
from portfolio_api.errors import BadRequestError, NotFoundError
from portfolio_api.settings import Settings

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=1, max_length=128)


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=8, max_length=72)

    @field_validator("new_password")
    @classmethod
    def _strong_enough(cls, value: str) -> str:
        if not PASSWORD_POLICY.match(value):
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase letter, "
                "one number and one special character"
            )
        return value


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    created_at: datetime
    updated_at: datetime


@router.post("/login")
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    user = await UserRepo(session).get_by_email(body.email)
    # Same message for unknown email and wrong password.
    if user is None or not verify_password(body.password, user.password_hash):
        raise BadRequestError("Invalid credentials")

    issued = issue_token(cfg=JwtConfig.from_settings(settings), subject=str(user.id))
    return {
        "status": "success",
        "token": issued.token,
        "expires_in": int(issued.expires_in.total_seconds()),
    }


@router.get("/user")
async def current_user(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    user = await UserRepo(session).get_by_subject(principal.subject)
    if user is None:
        raise NotFoundError("User")
    return success(UserOut.model_validate(user).model_dump(mode="json"))


@router.put("/password")
async def change_password(
    body: PasswordChangeRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    users = UserRepo(session)
    user = await users.get_by_subject(principal.subject)
    if user is None:
        raise NotFoundError("User")
    if not verify_password(body.current_password, user.password_hash):
        raise BadRequestError("Current password is incorrect")

    await users.update(user, {"password_hash": hash_password(body.new_password)})
    await session.commit()
    return {"status": "success", "message": "Password updated successfully"}


# --- Module Notes -----------------------------------------------------------
# The login route is also covered by the stricter login rate limit
# (`api.rate_limit.LOGIN_PATHS`).
