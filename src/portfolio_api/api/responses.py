"""
portfolio_api.api.responses

Success envelopes shared by every resource router.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class PageParams(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def success(data: Any = None, *, message: str | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"status": "success", "data": data}
    if message is not None:
        body["message"] = message
    return body


def paginated(data: list[Any], *, params: PageParams, total: int) -> dict[str, Any]:
    body = success(data)
    body["pagination"] = Pagination(
        page=params.page,
        limit=params.limit,
        total=total,
        pages=math.ceil(total / params.limit),
    ).model_dump()
    return body
