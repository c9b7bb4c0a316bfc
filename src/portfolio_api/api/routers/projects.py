"""
portfolio_api.api.routers.projects

Project endpoints.

Responsibilities:
- Public paginated listing and search.
- Admin create/update/delete.
- Admin image upload. `image_url` is only ever set by that upload, never by request bodies.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from portfolio_api.api.deps import db_session, upload_store_dep
from portfolio_api.api.fields import OptionalUrl, reject_null
from portfolio_api.api.responses import PageParams, paginated, success
from portfolio_api.auth.deps import get_principal
from portfolio_api.auth.models import Principal
from portfolio_api.db.models import Project
from portfolio_api.db.repositories import ProjectRepo
from portfolio_api.errors import BadRequestError, NotFoundError
from portfolio_api.uploads.deps import require_upload
from portfolio_api.uploads.store import UploadRecord, UploadStore
from portfolio_api.uploads.validation import MediaKind

router = APIRouter(prefix="/projects", tags=["projects"])


class ProjectCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=3, max_length=100)
    description: str = Field(min_length=10, max_length=1000)
    technologies: list[str] = Field(default_factory=list)
    github_url: OptionalUrl = None
    live_url: OptionalUrl = None
    featured: bool = False
    order: int = 0


class ProjectUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, min_length=10, max_length=1000)
    technologies: list[str] | None = None
    github_url: OptionalUrl = None
    live_url: OptionalUrl = None
    featured: bool | None = None
    order: int | None = None

    no_nulls = field_validator("title", "description", "technologies", "featured", "order")(reject_null)


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    technologies: list[str]
    image_url: str | None
    github_url: str | None
    live_url: str | None
    featured: bool
    order: int
    created_at: datetime
    updated_at: datetime


def _out(project: Project) -> dict[str, Any]:
    return ProjectOut.model_validate(project).model_dump(mode="json")


async def _get_or_404(repo: ProjectRepo, project_id: str) -> Project:
    project = await repo.get(project_id)
    if project is None:
        raise NotFoundError("Project")
    return project


@router.get("")
async def list_projects(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    featured: bool | None = None,
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    params = PageParams(page=page, limit=limit)
    rows, total = await ProjectRepo(session).page(featured=featured, offset=params.offset, limit=params.limit)
    return paginated([_out(p) for p in rows], params=params, total=total)


@router.get("/search")
async def search_projects(
    q: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    if not q or not q.strip():
        raise BadRequestError("Search query is required")
    params = PageParams(page=page, limit=limit)
    rows, total = await ProjectRepo(session).search(q, offset=params.offset, limit=params.limit)
    return paginated([_out(p) for p in rows], params=params, total=total)


@router.get("/{project_id}")
async def get_project(project_id: str, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    project = await _get_or_404(ProjectRepo(session), project_id)
    return success(_out(project))


@router.post("", status_code=HTTP_201_CREATED)
async def create_project(
    body: ProjectCreate,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    project = await ProjectRepo(session).create(body.model_dump())
    await session.commit()
    return success(_out(project), message="Project created successfully")


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    repo = ProjectRepo(session)
    project = await _get_or_404(repo, project_id)
    project = await repo.update(project, body.model_dump(exclude_unset=True))
    await session.commit()
    return success(_out(project), message="Project updated successfully")


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
    store: UploadStore = Depends(upload_store_dep),
) -> dict[str, Any]:
    repo = ProjectRepo(session)
    project = await _get_or_404(repo, project_id)
    image_url = project.image_url
    await repo.delete(project)
    await session.commit()
    await store.discard_url(image_url)
    return {"status": "success", "message": "Project removed successfully"}


@router.post("/{project_id}/image")
async def upload_project_image(
    project_id: str,
    principal: Principal = Depends(get_principal),
    record: UploadRecord = Depends(require_upload("image", kind=MediaKind.image)),
    session: AsyncSession = Depends(db_session),
    store: UploadStore = Depends(upload_store_dep),
) -> dict[str, Any]:
    repo = ProjectRepo(session)
    try:
        project = await _get_or_404(repo, project_id)
    except Exception:
        # The file was stored before the lookup; do not leave it orphaned.
        await store.discard(record)
        raise

    previous = project.image_url
    project = await repo.update(project, {"image_url": record.url})
    await session.commit()
    if previous != record.url:
        await store.discard_url(previous)
    return success(_out(project), message="Project image uploaded successfully")
