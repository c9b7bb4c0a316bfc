"""
portfolio_api.db.repositories

Repository classes, one per resource, each wrapping a request-scoped AsyncSession.
"""

from portfolio_api.db.repositories.about import AboutRepo
from portfolio_api.db.repositories.profile import ProfileRepo
from portfolio_api.db.repositories.projects import ProjectRepo
from portfolio_api.db.repositories.skills import SkillRepo
from portfolio_api.db.repositories.testimonials import TestimonialRepo
from portfolio_api.db.repositories.users import UserRepo

__all__ = [
    "AboutRepo",
    "ProfileRepo",
    "ProjectRepo",
    "SkillRepo",
    "TestimonialRepo",
    "UserRepo",
]
