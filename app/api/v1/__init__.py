"""API v1 router aggregation."""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    families,
    goals,
    health,
    motivation,
    preferences,
    sessions,
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(families.router, prefix="/families", tags=["families"])
api_router.include_router(sessions.router, prefix="/families", tags=["sessions"])
api_router.include_router(goals.router, prefix="/families", tags=["goals"])
api_router.include_router(motivation.router, prefix="/families", tags=["motivation"])
api_router.include_router(preferences.router, prefix="/preferences", tags=["preferences"])
