"""Health check endpoint for load balancers and monitoring."""

import os

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.core.enums import SyncBackend
from app.db.session import async_session_maker

router = APIRouter()


@router.get("")
async def health(request: Request):
    """Liveness plus connected families. Includes built_at if BACKEND_BUILT_AT env is set."""
    payload: dict = {
        "status": "ok",
        "families": request.app.state.connections.family_ids,
    }
    built_at = os.environ.get("BACKEND_BUILT_AT")
    if built_at:
        payload["built_at"] = built_at
    return payload


@router.get("/ready")
async def readiness(request: Request):
    """Readiness: app + sync backend connectivity."""
    if request.app.state.settings.sync_backend is SyncBackend.MEMORY:
        return {"status": "ok", "sync_backend": "memory"}
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
        return {"status": "ok", "sync_backend": "sql", "database": "connected"}
    except Exception as e:
        return JSONResponse(
            status_code=500,
            content={"status": "error", "database": str(e)},
        )
