"""
portfolio_api.api.routers.profile

Singleton profile document.

Responsibilities:
- Serve the profile, seeding a placeholder on first read.
- Upsert profile fields (admin).
- Accept avatar (image) and resume (document) uploads and store their public URLs.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_api.api.deps import db_session, upload_store_dep
from portfolio_api.api.fields import OptionalUrl, reject_null
from portfolio_api.api.responses import success
from portfolio_api.auth.deps import get_principal
from portfolio_api.auth.models import Principal
from portfolio_api.db.models import Profile
from portfolio_api.db.repositories import ProfileRepo
from portfolio_api.uploads.deps import require_upload
from portfolio_api.uploads.store import UploadRecord, UploadStore
from portfolio_api.uploads.validation import MediaKind

router = APIRouter(prefix="/profile", tags=["profile"])


class SocialLinks(BaseModel):
    github: OptionalUrl = None
    linkedin: OptionalUrl = None
    twitter: OptionalUrl = None
    instagram: OptionalUrl = None


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=100)
    title: str | None = Field(default=None, min_length=1, max_length=100)
    bio: str | None = Field(default=None, min_length=1, max_length=2000)
    email: str | None = Field(default=None, max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str | None = Field(default=None, min_length=1, max_length=50)
    social: SocialLinks | None = None

    no_nulls = field_validator("name", "title", "bio", "email", "phone", "social")(reject_null)


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    title: str
    bio: str
    email: str
    phone: str
    resume_url: str
    avatar_url: str
    social: dict[str, Any]
    created_at: datetime
    updated_at: datetime


def _out(profile: Profile) -> dict[str, Any]:
    return ProfileOut.model_validate(profile).model_dump(mode="json")


@router.get("")
async def get_profile(session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    profile, created = await ProfileRepo(session).get_or_create_default()
    if created:
        await session.commit()
    return success(_out(profile))


@router.put("")
async def update_profile(
    body: ProfileUpdate,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    changes = body.model_dump(exclude_unset=True)
    if body.social is not None:
        # The social document is replaced as a whole; missing links become empty strings.
        changes["social"] = {k: v or "" for k, v in body.social.model_dump().items()}
    profile = await ProfileRepo(session).upsert(changes)
    await session.commit()
    return success(_out(profile), message="Profile updated successfully")


async def _attach_upload(
    store: UploadStore, session: AsyncSession, record: UploadRecord, attribute: str
) -> Profile:
    repo = ProfileRepo(session)
    profile, _ = await repo.get_or_create_default()
    previous = getattr(profile, attribute)
    profile = await repo.update(profile, {attribute: record.url})
    await session.commit()
    if previous != record.url:
        await store.discard_url(previous)
    return profile


@router.post("/avatar")
async def upload_avatar(
    principal: Principal = Depends(get_principal),
    record: UploadRecord = Depends(require_upload("avatar", kind=MediaKind.image)),
    session: AsyncSession = Depends(db_session),
    store: UploadStore = Depends(upload_store_dep),
) -> dict[str, Any]:
    profile = await _attach_upload(store, session, record, "avatar_url")
    return success({"avatar_url": profile.avatar_url}, message="Avatar uploaded successfully")


@router.post("/resume")
async def upload_resume(
    principal: Principal = Depends(get_principal),
    record: UploadRecord = Depends(require_upload("resume", kind=MediaKind.document)),
    session: AsyncSession = Depends(db_session),
    store: UploadStore = Depends(upload_store_dep),
) -> dict[str, Any]:
    profile = await _attach_upload(store, session, record, "resume_url")
    return success({"resume_url": profile.resume_url}, message="Resume uploaded successfully")


# --- Module Notes -----------------------------------------------------------
# Replaced avatar/resume files are removed from disk once the new URL is committed.
