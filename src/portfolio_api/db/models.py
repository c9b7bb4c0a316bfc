"""
portfolio_api.db.models

Persistence schema for the portfolio site.

Responsibilities:
- Define ORM models for the resources the site renders:
  - User: the single admin account
  - Project, Skill, Testimonial: ordered collections
  - Profile, About: singleton documents
- Keep list and sub-document fields as JSON columns (document-style storage).
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Enum, Index, Integer, String, Text, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column

from portfolio_api.db.base import Base


def _utcnow() -> datetime:
    # Persist naive UTC timestamps for simplicity.
    return datetime.now(tz=UTC).replace(tzinfo=None)


class SkillCategory(enum.StrEnum):
    frontend = "Frontend"
    backend = "Backend"
    database = "Database"
    devops = "DevOps"
    other = "Other"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(254), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    technologies: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    github_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    live_url: Mapped[str | None] = mapped_column(String(512), nullable=True)

    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    # "order" is reserved in SQL; keep the attribute name, rename the column.
    order: Mapped[int] = mapped_column("sort_order", Integer, nullable=False, default=0, index=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (Index("ix_projects_featured_order", "featured", "sort_order"),)


class Skill(Base):
    __tablename__ = "skills"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    category: Mapped[SkillCategory] = mapped_column(Enum(SkillCategory), nullable=False)
    proficiency: Mapped[int] = mapped_column(Integer, nullable=False)
    order: Mapped[int] = mapped_column("sort_order", Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class Testimonial(Base):
    __tablename__ = "testimonials"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    company: Mapped[str | None] = mapped_column(String(100), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)

    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order: Mapped[int] = mapped_column("sort_order", Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    bio: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)

    resume_url: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    avatar_url: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    # {"github": ..., "linkedin": ..., "twitter": ..., "instagram": ...}
    social: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class About(Base):
    __tablename__ = "about"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    about: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    years_of_experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    interests: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # Lists of {title, company, duration, description} / {degree, institution, duration, description}.
    experience: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    education: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


# --- Module Notes -----------------------------------------------------------
# Binary upload content never lands here; resources only keep the public URL.
