"""RouteGuard Access-Control Service - FastAPI Application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Query

from .accesses import reconciler
from .database import init_db
from .models import HealthResponse
from .routes_accesses import register_access_routes
from .settings import get_setting, list_settings, log_settings_sources
from .storage import provider_store

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Apply the configured root log level."""
    level_name = get_setting("operational.log_level").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        logger.warning(f"Unknown log level {level_name!r}, using INFO")
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan."""
    init_db()
    configure_logging()
    logger.info("Database initialized")
    log_settings_sources()
    yield


# Create FastAPI app
app = FastAPI(
    title="RouteGuard Access-Control Service",
    description="Consumer black/white lists stored as force routing rules",
    version="0.1.0",
    lifespan=lifespan,
)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", timestamp=datetime.now(timezone.utc))


@app.get("/api/v1/settings")
def get_settings(group: str | None = Query(None, description="Filter by settings group")):
    """List effective settings and where each value comes from."""
    settings = list_settings(group)
    if group and not settings:
        raise HTTPException(status_code=404, detail=f"Unknown settings group: {group}")
    return {"settings": settings, "total": len(settings)}


register_access_routes(app, reconciler=reconciler, provider_store=provider_store)


# Run with: uvicorn app.main:app --host 0.0.0.0 --port 8080
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
