"""
Itinerary Engine Service - FastAPI Application
Preference matching, day planning, destination sequencing and pricing over HTTP

Cache backend:
- CACHE_BACKEND=memory: in-process TTL cache (default)
- CACHE_BACKEND=redis: shared Redis cache
"""

import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from . import __version__
from .api import matching_router, planning_router, pricing_router, sequencing_router, status_router
from .config import settings
from .engine import build_engine

# Configure logging
logger.remove()
logger.add(sys.stderr, level=settings.LOG_LEVEL)


# ============================================
# Application Lifespan
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info("=" * 50)
    logger.info("Starting Itinerary Engine Service")
    logger.info("=" * 50)
    logger.info(f"Environment: {settings.API_ENV}")
    logger.info(f"Cache backend: {settings.CACHE_BACKEND}")
    if settings.CACHE_BACKEND == "redis":
        logger.info(f"  Redis: {settings.redis_url}")
    logger.info(f"Matching profile: {settings.MATCHING_PROFILE}")
    logger.info(f"Day planning profile: {settings.DAY_PLANNING_PROFILE}")
    logger.info(f"Sequencing profile: {settings.SEQUENCING_PROFILE}")

    engine = build_engine(settings)
    engine.start()
    app.state.engine = engine

    yield

    engine.shutdown()
    logger.info("Itinerary Engine shutdown complete")


# ============================================
# FastAPI Application
# ============================================

app = FastAPI(
    title="Itinerary Engine Service",
    description="Preference matching, day planning and dynamic pricing for trip itineraries.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(matching_router)
app.include_router(planning_router)
app.include_router(sequencing_router)
app.include_router(pricing_router)
app.include_router(status_router)


# ============================================
# REST Endpoints
# ============================================

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "Itinerary Engine Service",
        "version": __version__,
        "status": "running",
        "docs": "/docs",
        "endpoints": [
            "/health",
            "/api/engine/match",
            "/api/engine/preferences/validate",
            "/api/engine/day-plan",
            "/api/engine/sequence",
            "/api/engine/pricing/quote",
            "/api/engine/status"
        ]
    }


@app.get("/health")
async def health_check():
    """Liveness check with component health"""
    engine = getattr(app.state, "engine", None)
    if engine is None:
        return {"status": "starting", "version": __version__}

    status = engine.get_engine_status()
    unhealthy = [c.component for c in status.health_checks if c.status == "error"]

    return {
        "status": "degraded" if unhealthy else "healthy",
        "version": __version__,
        "cache_backend": status.cache_backend,
        "unhealthy_components": unhealthy,
    }


# ============================================
# Main
# ============================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "itinerary_engine.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_ENV == "development"
    )
