"""
portfolio_api.api.routers

Resource routers, combined into one `api_router` that the app mounts under its
API prefixes.
"""

from fastapi import APIRouter

from portfolio_api.api.routers.about import router as about_router
from portfolio_api.api.routers.auth import router as auth_router
from portfolio_api.api.routers.profile import router as profile_router
from portfolio_api.api.routers.projects import router as projects_router
from portfolio_api.api.routers.skills import router as skills_router
from portfolio_api.api.routers.testimonials import router as testimonials_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(projects_router)
api_router.include_router(skills_router)
api_router.include_router(testimonials_router)
api_router.include_router(profile_router)
api_router.include_router(about_router)

__all__ = ["api_router"]
