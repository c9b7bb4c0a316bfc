"""
portfolio_api.api.routers.testimonials

Testimonial endpoints: public listing (optionally featured only), admin
create/update/delete.
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
from portfolio_api.db.models import Testimonial
from portfolio_api.db.repositories import TestimonialRepo
from portfolio_api.errors import NotFoundError

router = APIRouter(prefix="/testimonials", tags=["testimonials"])


class TestimonialCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    position: str | None = Field(default=None, max_length=100)
    company: str | None = Field(default=None, max_length=100)
    content: str = Field(min_length=1, max_length=2000)
    image_url: str | None = Field(default=None, max_length=512)
    featured: bool = False
    order: int = 0


class TestimonialUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=100)
    position: str | None = Field(default=None, max_length=100)
    company: str | None = Field(default=None, max_length=100)
    content: str | None = Field(default=None, min_length=1, max_length=2000)
    image_url: str | None = Field(default=None, max_length=512)
    featured: bool | None = None
    order: int | None = None

    no_nulls = field_validator("name", "content", "featured", "order")(reject_null)


class TestimonialOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    position: str | None
    company: str | None
    content: str
    image_url: str | None
    featured: bool
    order: int
    created_at: datetime
    updated_at: datetime


def _out(testimonial: Testimonial) -> dict[str, Any]:
    return TestimonialOut.model_validate(testimonial).model_dump(mode="json")


async def _get_or_404(repo: TestimonialRepo, testimonial_id: str) -> Testimonial:
    testimonial = await repo.get(testimonial_id)
    if testimonial is None:
        raise NotFoundError("Testimonial")
    return testimonial


@router.get("")
async def list_testimonials(
    featured: bool | None = None,
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    rows = await TestimonialRepo(session).list_ordered(featured=featured)
    return success([_out(t) for t in rows])


@router.post("", status_code=HTTP_201_CREATED)
async def create_testimonial(
    body: TestimonialCreate,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    testimonial = await TestimonialRepo(session).create(body.model_dump())
    await session.commit()
    return success(_out(testimonial), message="Testimonial created successfully")


@router.put("/{testimonial_id}")
async def update_testimonial(
    testimonial_id: str,
    body: TestimonialUpdate,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    repo = TestimonialRepo(session)
    testimonial = await _get_or_404(repo, testimonial_id)
    testimonial = await repo.update(testimonial, body.model_dump(exclude_unset=True))
    await session.commit()
    return success(_out(testimonial), message="Testimonial updated successfully")


@router.delete("/{testimonial_id}")
async def delete_testimonial(
    testimonial_id: str,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    repo = TestimonialRepo(session)
    await repo.delete(await _get_or_404(repo, testimonial_id))
    await session.commit()
    return {"status": "success", "message": "Testimonial removed successfully"}
