# api/planning.py
"""
Day Planning API
Builds, validates and tidies single-day schedules
"""

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from ..algorithms import DayPlanningError, InvalidTimeFormatError
from ..engine import ItineraryEngine
from ..schemas import DayPlan, DayPlanRequest, DayPlanValidation
from .dependencies import get_engine


router = APIRouter(prefix="/api/engine/day-plan", tags=["day-planning"])


@router.post("", response_model=DayPlan)
async def plan_day(request: DayPlanRequest, engine: ItineraryEngine = Depends(get_engine)):
    """Schedule activities around meals for one day"""
    try:
        return engine.plan_day(request.destination, request.date, request.activities, request.preferences)
    except InvalidTimeFormatError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except DayPlanningError as e:
        logger.error(f"Day planning failed for {request.date}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/validate", response_model=DayPlanValidation)
async def validate_day_plan(plan: DayPlan, engine: ItineraryEngine = Depends(get_engine)):
    """Report overlaps, meal conflicts, cost outliers and pacing issues"""
    return engine.validate_day_plan(plan)


@router.post("/optimize", response_model=DayPlan)
async def optimize_day_plan(plan: DayPlan, engine: ItineraryEngine = Depends(get_engine)):
    """Order activities chronologically and refresh free time"""
    return engine.optimize_day_schedule(plan)
