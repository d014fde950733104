"""
FastAPI application entry point.
"""

import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager
from redis.exceptions import RedisError

from nubefeed import __version__
from nubefeed.api.router import router, api_v1_router
from nubefeed.api import debug
from nubefeed.config import get_settings
from nubefeed.deps import close_clients, get_redis
from nubefeed.schemas.common import HealthResponse, RedisHealthResponse


settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    # Startup
    yield
    # Shutdown
    await close_clients()


app = FastAPI(
    title="Tiendanube XML Feed",
    description="Google Shopping XML feeds for Tiendanube stores",
    version=__version__,
    lifespan=lifespan
)

# Include routers
app.include_router(router)
app.include_router(api_v1_router, prefix="/api/v1")

if settings.debug:
    app.include_router(debug.router, prefix="/debug", tags=["debug"])


@app.get("/api/v1/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(ok=True)


@app.get("/api/v1/health/redis", response_model=RedisHealthResponse, tags=["health"])
async def health_check_redis():
    """Check Redis connection health."""
    redis = get_redis()
    if redis is None:
        return RedisHealthResponse(ok=True, redis="disabled")
    try:
        await redis.ping()
        return RedisHealthResponse(ok=True, redis="connected")
    except RedisError as e:
        return RedisHealthResponse(ok=False, redis="disconnected", error=str(e))


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "message": "Tiendanube XML Feed",
        "version": __version__,
        "install": "/install",
        "feed": "/feed.xml?store_id=<store_id>"
    }
