"""
portfolio_api.api.routers.skills

Skill endpoints: public ordered listing, admin create/update/delete.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from portfolio_api.api.deps import db_session
from portfolio_api.api.fields import reject_null
from portfolio_api.api.responses import success
from portfolio_api.auth.deps import get_principal
from portfolio_api.auth.models import Principal
from portfolio_api.db.models import Skill, SkillCategory
from portfolio_api.db.repositories import SkillRepo
from portfolio_api.errors import NotFoundError

router = APIRouter(prefix="/skills", tags=["skills"])


class SkillCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    category: SkillCategory
    proficiency: int = Field(ge=0, le=100)
    order: int = 0


class SkillUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=100)
    category: SkillCategory | None = None
    proficiency: int | None = Field(default=None, ge=0, le=100)
    order: int | None = None

    no_nulls = field_validator("name", "category", "proficiency", "order")(reject_null)


class SkillOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    category: SkillCategory
    proficiency: int
    order: int
    created_at: datetime
    updated_at: datetime


def _out(skill: Skill) -> dict[str, Any]:
    return SkillOut.model_validate(skill).model_dump(mode="json")


async def _get_or_404(repo: SkillRepo, skill_id: str) -> Skill:
    skill = await repo.get(skill_id)
    if skill is None:
        raise NotFoundError("Skill")
    return skill


@router.get("")
async def list_skills(session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    return success([_out(s) for s in await SkillRepo(session).list_ordered()])


@router.post("", status_code=HTTP_201_CREATED)
async def create_skill(
    body: SkillCreate,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    skill = await SkillRepo(session).create(body.model_dump())
    await session.commit()
    return success(_out(skill), message="Skill created successfully")


@router.put("/{skill_id}")
async def update_skill(
    skill_id: str,
    body: SkillUpdate,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    repo = SkillRepo(session)
    skill = await _get_or_404(repo, skill_id)
    skill = await repo.update(skill, body.model_dump(exclude_unset=True))
    await session.commit()
    return success(_out(skill), message="Skill updated successfully")


@router.delete("/{skill_id}")
async def delete_skill(
    skill_id: str,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    repo = SkillRepo(session)
    await repo.delete(await _get_or_404(repo, skill_id))
    await session.commit()
    return {"status": "success", "message": "Skill removed successfully"}
