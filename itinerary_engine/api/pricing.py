# api/pricing.py
"""
Pricing API
Dynamic quotes, budget optimization and trip/itinerary totals
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from ..engine import ItineraryEngine
from ..schemas import (
    BudgetOptimization,
    BudgetRequest,
    CostBreakdown,
    ItineraryCostRequest,
    PriceQuoteRequest,
    PriceQuoteResponse,
    SeasonalFactors,
    TripPricing,
    TripRequest,
)
from .dependencies import get_engine


router = APIRouter(prefix="/api/engine/pricing", tags=["pricing"])


@router.post("/quote", response_model=PriceQuoteResponse)
async def quote_price(request: PriceQuoteRequest, engine: ItineraryEngine = Depends(get_engine)):
    """Apply seasonal, demand, day, group and advance-booking adjustments"""
    try:
        breakdown = engine.quote_price(request.base_price, request.factors)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return PriceQuoteResponse(**breakdown._asdict())


@router.post("/budget", response_model=BudgetOptimization)
async def optimize_budget(request: BudgetRequest, engine: ItineraryEngine = Depends(get_engine)):
    """Savings suggestions and cheaper alternatives when over budget"""
    return engine.optimize_budget(request.items, request.target_budget, request.group_size)


@router.post("/trip", response_model=TripPricing)
async def price_trip(trip: TripRequest, engine: ItineraryEngine = Depends(get_engine)):
    """Price every line item with the trip's travel-date factors"""
    if trip.end_date < trip.start_date:
        raise HTTPException(status_code=422, detail="end_date must not be before start_date")
    return engine.price_trip(trip)


@router.post("/itinerary-cost", response_model=CostBreakdown)
async def itinerary_cost(request: ItineraryCostRequest, engine: ItineraryEngine = Depends(get_engine)):
    """Per-day and per-category totals with contingency"""
    return engine.estimate_itinerary_cost(request.day_plans, request.travelers)


@router.get("/seasonal-factors", response_model=SeasonalFactors)
async def seasonal_factors(
    travel_date: date = Query(..., description="Travel date (YYYY-MM-DD)"),
    engine: ItineraryEngine = Depends(get_engine)
):
    """Season, day type and demand level for a date"""
    return engine.get_seasonal_factors(travel_date)
