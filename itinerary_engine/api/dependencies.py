"""
Shared API dependencies
"""

from fastapi import HTTPException, Request

from ..engine import ItineraryEngine


def get_engine(request: Request) -> ItineraryEngine:
    """Engine built during application startup"""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Itinerary engine not initialized")
    return engine
