# api/sequencing.py
"""
Destination Sequencing API
Orders multi-destination trips and estimates the legs between stops
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from ..algorithms import MissingCoordinatesError, SequencingError
from ..engine import ItineraryEngine
from ..schemas import (
    SequencedDestination,
    SequenceRequest,
    SequenceValidation,
    TravelTimeRequest,
    TravelTimeResult,
)
from .dependencies import get_engine


router = APIRouter(prefix="/api/engine/sequence", tags=["sequencing"])


@router.post("", response_model=List[SequencedDestination])
async def sequence_destinations(request: SequenceRequest, engine: ItineraryEngine = Depends(get_engine)):
    """Cluster, order and allocate days across destinations"""
    logger.info(
        f"Sequence request: {len(request.destinations)} destinations, "
        f"start={request.constraints.start_location}"
    )
    try:
        return engine.sequence_destinations(request.destinations, request.preferences, request.constraints)
    except MissingCoordinatesError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except SequencingError as e:
        logger.error(f"Destination sequencing failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/travel-time", response_model=TravelTimeResult)
async def travel_time(request: TravelTimeRequest, engine: ItineraryEngine = Depends(get_engine)):
    """Distance, duration, cost and transport option between two destinations"""
    try:
        return engine.calculate_travel_time(
            request.from_destination, request.to_destination, request.transport_type
        )
    except MissingCoordinatesError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/validate", response_model=SequenceValidation)
async def validate_sequence(sequence: List[SequencedDestination], engine: ItineraryEngine = Depends(get_engine)):
    """Report date, allocation and travel-time issues"""
    return engine.validate_sequence(sequence)
