"""
portfolio_api.api.routers.about

About-page document: public read (or `null` before it is written), admin upsert.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_api.api.deps import db_session
from portfolio_api.api.fields import reject_null
from portfolio_api.api.responses import success
from portfolio_api.auth.deps import get_principal
from portfolio_api.auth.models import Principal
from portfolio_api.db.repositories import AboutRepo

router = APIRouter(prefix="/about", tags=["about"])


class ExperienceEntry(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=100)
    company: str = Field(min_length=1, max_length=100)
    duration: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)


class EducationEntry(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    degree: str = Field(min_length=1, max_length=100)
    institution: str = Field(min_length=1, max_length=100)
    duration: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)


class AboutUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    about: str | None = Field(default=None, max_length=5000)
    location: str | None = Field(default=None, max_length=100)
    years_of_experience: int | None = Field(default=None, ge=0, le=100)
    interests: list[str] | None = None
    experience: list[ExperienceEntry] | None = None
    education: list[EducationEntry] | None = None

    no_nulls = field_validator("years_of_experience", "interests", "experience", "education")(reject_null)


class AboutOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    about: str | None
    location: str | None
    years_of_experience: int
    interests: list[str]
    experience: list[dict[str, Any]]
    education: list[dict[str, Any]]
    updated_at: datetime


@router.get("")
async def get_about(session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    about = await AboutRepo(session).first()
    if about is None:
        return success(None)
    return success(AboutOut.model_validate(about).model_dump(mode="json"))


@router.put("")
async def update_about(
    body: AboutUpdate,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    about = await AboutRepo(session).upsert(body.model_dump(exclude_unset=True))
    await session.commit()
    return success(AboutOut.model_validate(about).model_dump(mode="json"), message="About updated successfully")
