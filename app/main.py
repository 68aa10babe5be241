"""FastAPI application factory and lifespan."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import api_router
from app.core.config import Settings, get_settings
from app.core.enums import SyncBackend
from app.db.session import async_session_maker, create_tables, engine
from app.services.connections import FamilyConnections
from app.services.device_prefs import DevicePreferences
from app.services.sync_bridge import InMemorySyncBridge, SqlSyncBridge, SyncBridge

logger = logging.getLogger(__name__)


def build_sync_bridge(settings: Settings) -> SyncBridge:
    if settings.sync_backend is SyncBackend.MEMORY:
        return InMemorySyncBridge()
    return SqlSyncBridge(async_session_maker, poll_interval=settings.sync_poll_interval_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: build the sync bridge and reconnect the remembered family; shutdown: cleanup."""
    settings: Settings = app.state.settings
    if settings.sync_backend is SyncBackend.SQL and settings.environment == "development":
        # Use Alembic in production
        await create_tables()
    bridge = build_sync_bridge(settings)
    preferences = DevicePreferences(Path(settings.device_prefs_path))
    connections = FamilyConnections(
        bridge,
        preferences=preferences,
        default_goal=settings.default_daily_goal,
        date_check_interval=settings.date_check_interval_seconds,
    )
    app.state.preferences = preferences
    app.state.connections = connections
    restored = await connections.restore()
    if restored is not None:
        logger.info("Reconnected to family %s from device preferences", restored.family_id)
    yield
    await connections.close()
    if isinstance(bridge, SqlSyncBridge):
        await bridge.close()
    await engine.dispose()


def create_application(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    # CORS: allow everything in debug, localhost in dev, CORS_ORIGINS otherwise
    if settings.debug:
        cors_origins = ["*"]
    elif settings.environment == "development":
        cors_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
    else:
        cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {"status": "ok", "message": settings.app_name}

    app.include_router(api_router, prefix=settings.api_v1_prefix)
    return app


app = create_application()
