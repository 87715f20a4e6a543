# itinerary_engine/__init__.py
"""
Itinerary Engine Package

Core services for building personalised trip itineraries:
- Preference matching (score content against traveller preferences)
- Day planning (meal-aware, non-overlapping daily schedules)
- Dynamic pricing and budget optimization
- Result caching (in-memory or Redis)
"""

__version__ = "1.0.0"

# Package structure:
# itinerary_engine/
# ├── __init__.py           <- This file
# ├── main.py               <- FastAPI application entry
# ├── config.py             <- Configuration settings
# ├── engine.py             <- ItineraryEngine facade + build_engine
# │
# ├── algorithms/           <- Scoring, planning and pricing
# │   ├── preference_matcher.py
# │   ├── day_planner.py
# │   ├── pricing_engine.py
# │   └── time_utils.py
# │
# ├── cache/                <- Result caches
# │   ├── keys.py           <- Preference cache keys
# │   ├── memory_cache.py   <- In-process TTL cache
# │   ├── redis_cache.py    <- Redis-backed cache
# │   └── redis_client.py   <- Redis connection
# │
# ├── api/                  <- FastAPI Routers
# │   ├── matching.py       <- /api/engine/match, /preferences/validate
# │   ├── planning.py       <- /api/engine/day-plan
# │   ├── pricing.py        <- /api/engine/pricing
# │   └── status.py         <- /api/engine/status, /cache
# │
# └── schemas/              <- Pydantic Models
#     └── engine_schemas.py
