# api/matching.py
"""
Matching API
Ranks content against traveller preferences and validates preferences
"""

from typing import List

from fastapi import APIRouter, Depends
from loguru import logger

from ..engine import ItineraryEngine
from ..schemas import ContentMatchScore, MatchRequest, UserPreferences, ValidationResult
from .dependencies import get_engine


router = APIRouter(prefix="/api/engine", tags=["matching"])


@router.post("/match", response_model=List[ContentMatchScore])
async def match_content(request: MatchRequest, engine: ItineraryEngine = Depends(get_engine)):
    """
    Score content against preferences, highest first

    Items below minimum_score are dropped.
    """
    logger.info(
        f"Match request: {len(request.content)} items, "
        f"destination={request.preferences.primary_destination}, min={request.minimum_score}"
    )
    return engine.rank_content(request.preferences, request.content, request.minimum_score)


@router.post("/preferences/validate", response_model=ValidationResult)
async def validate_preferences(preferences: UserPreferences, engine: ItineraryEngine = Depends(get_engine)):
    """Check required fields, date range, budget range and traveller count"""
    return engine.validate_preferences(preferences)
