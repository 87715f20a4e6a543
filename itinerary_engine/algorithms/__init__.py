"""
Itinerary Algorithms Module
Core algorithms for preference matching, day planning, destination
sequencing and pricing
"""

from .preference_matcher import PreferenceMatcher, MatchingWeights, MatchingPerformance, get_match_quality
from .day_planner import DayPlanner, DayPlanningConfig, DayPlanningError
from .destination_sequencer import (
    DestinationSequencer, SequencingConfig, SequencingError, MissingCoordinatesError
)
from .pricing_engine import PricingEngine, PriceBreakdown
from .time_utils import InvalidTimeFormatError

__all__ = [
    "PreferenceMatcher",
    "MatchingWeights",
    "MatchingPerformance",
    "get_match_quality",
    "DayPlanner",
    "DayPlanningConfig",
    "DayPlanningError",
    "DestinationSequencer",
    "SequencingConfig",
    "SequencingError",
    "MissingCoordinatesError",
    "PricingEngine",
    "PriceBreakdown",
    "InvalidTimeFormatError"
]
