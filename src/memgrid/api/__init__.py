from __future__ import annotations

from fastapi import APIRouter

from memgrid.api.routes.games import router as games_router
from memgrid.api.routes.health import router as health_router
from memgrid.api.routes.leaderboard import router as leaderboard_router

# Top-level API router
router = APIRouter()

# Route composition
router.include_router(health_router)
router.include_router(games_router)
router.include_router(leaderboard_router)
