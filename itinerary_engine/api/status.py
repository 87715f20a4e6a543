# api/status.py
"""
Status API
Engine health and cache management
"""

from fastapi import APIRouter, Depends

from ..engine import ItineraryEngine
from ..schemas import EngineStatus, MessageResponse
from .dependencies import get_engine


router = APIRouter(prefix="/api/engine", tags=["status"])


@router.get("/status", response_model=EngineStatus)
async def engine_status(engine: ItineraryEngine = Depends(get_engine)):
    """Version, uptime, request counters, cache stats and component health"""
    return engine.get_engine_status()


@router.get("/cache", response_model=MessageResponse)
async def cache_info(engine: ItineraryEngine = Depends(get_engine)):
    """Cache configuration, stats and entries"""
    return MessageResponse(message="Cache info", details=engine.get_cache_info())


@router.delete("/cache", response_model=MessageResponse)
async def clear_cache(engine: ItineraryEngine = Depends(get_engine)):
    """Drop all cached results and reset counters"""
    engine.clear_cache()
    return MessageResponse(message="Cache cleared")
