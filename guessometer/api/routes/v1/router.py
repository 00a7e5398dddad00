"""
V1 API router -- aggregates all v1 sub-routers.

Included in the app at ``/api/v1`` prefix by ``create_app()``.
"""

from __future__ import annotations

from fastapi import APIRouter

from guessometer.api.routes.v1.admin import router as admin_router
from guessometer.api.routes.v1.categories import router as categories_router
from guessometer.api.routes.v1.community import router as community_router
from guessometer.api.routes.v1.health import router as health_router
from guessometer.api.routes.v1.leaderboard import router as leaderboard_router
from guessometer.api.routes.v1.predictions import router as predictions_router
from guessometer.api.routes.v1.users import router as users_router

v1_router = APIRouter()

# Health is public
v1_router.include_router(health_router, tags=["health"])

v1_router.include_router(predictions_router, prefix="/predictions", tags=["predictions"])
v1_router.include_router(users_router, prefix="/user", tags=["user"])
v1_router.include_router(leaderboard_router, prefix="/leaderboard", tags=["leaderboard"])
v1_router.include_router(categories_router, prefix="/categories", tags=["categories"])
v1_router.include_router(community_router, prefix="/community-content", tags=["community"])
v1_router.include_router(admin_router, prefix="/admin", tags=["admin"])
