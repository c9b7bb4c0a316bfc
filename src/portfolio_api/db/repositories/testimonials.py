"""
portfolio_api.db.repositories.testimonials

Repository for `Testimonial` entities.

Responsibilities:
- Ordered listing, optionally restricted to featured testimonials.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select

from portfolio_api.db.models import Testimonial
from portfolio_api.db.repositories.base import CrudRepo


class TestimonialRepo(CrudRepo[Testimonial]):
    model = Testimonial

    async def list_ordered(self, *, featured: bool | None = None) -> Sequence[Testimonial]:
        stmt = select(Testimonial).order_by(Testimonial.order.asc(), Testimonial.created_at.desc())
        if featured is not None:
            stmt = stmt.where(Testimonial.featured.is_(featured))
        return (await self._session.execute(stmt)).scalars().all()
