# api/__init__.py
"""
API Endpoints Package

Contains all FastAPI routers for the itinerary engine:
- matching: Content ranking and preference validation
- planning: Day plans, validation and optimization
- sequencing: Destination order, day allocation and travel times
- pricing: Quotes, budgets, trip and itinerary costs
- status: Engine status and cache management
"""

from .matching import router as matching_router
from .planning import router as planning_router
from .sequencing import router as sequencing_router
from .pricing import router as pricing_router
from .status import router as status_router

__all__ = [
    "matching_router",
    "planning_router",
    "sequencing_router",
    "pricing_router",
    "status_router"
]
