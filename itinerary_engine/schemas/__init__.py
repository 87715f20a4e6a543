# schemas/__init__.py
"""
Pydantic Schemas Package

Contains all Pydantic v2 models for:
- Content items and user preferences
- Day plans and validation results
- Destination sequences and travel times
- Pricing requests/responses
- Cache and engine status
"""

from .engine_schemas import (
    # Enums
    ActivityCategory, AccommodationType, TransportationType,
    # Primitives
    Money, TimeSlot, Coordinates, AccessibilityInfo,
    # Content
    ContentBase, Activity, Accommodation, Transportation, Destination, ContentItem,
    # Preferences & matching
    UserPreferences, ContentMatchScore, MatchingCriteria,
    DestinationConstraint, TimeConstraint, BudgetConstraint,
    # Day planning
    MealPreference, DayPlanningPreferences, ScheduledActivity, ScheduledMeal,
    DayPlan, DayPlanIssue, DayPlanValidation,
    # Destination sequencing
    SequencingConstraints, SequencedDestination, TravelTimeResult,
    SequenceIssue, SequenceValidation,
    # Pricing
    PricingFactors, SeasonalFactors, LineItem, BudgetSuggestion, Alternative,
    BudgetOptimization, TripRequest, PricedLineItem, TripTotals, TripPricing,
    CategoryCosts, DailyCosts, CostBreakdown,
    # Engine & cache
    ValidationIssue, ValidationResult, CacheStats, HealthCheck, EngineStatus,
    # API
    MatchRequest, DayPlanRequest, SequenceRequest, TravelTimeRequest, PriceQuoteRequest, PriceQuoteResponse,
    BudgetRequest, ItineraryCostRequest, MessageResponse
)

__all__ = [
    # Enums
    "ActivityCategory", "AccommodationType", "TransportationType",
    # Primitives
    "Money", "TimeSlot", "Coordinates", "AccessibilityInfo",
    # Content
    "ContentBase", "Activity", "Accommodation", "Transportation", "Destination", "ContentItem",
    # Preferences & matching
    "UserPreferences", "ContentMatchScore", "MatchingCriteria",
    "DestinationConstraint", "TimeConstraint", "BudgetConstraint",
    # Day planning
    "MealPreference", "DayPlanningPreferences", "ScheduledActivity", "ScheduledMeal",
    "DayPlan", "DayPlanIssue", "DayPlanValidation",
    # Destination sequencing
    "SequencingConstraints", "SequencedDestination", "TravelTimeResult",
    "SequenceIssue", "SequenceValidation",
    # Pricing
    "PricingFactors", "SeasonalFactors", "LineItem", "BudgetSuggestion", "Alternative",
    "BudgetOptimization", "TripRequest", "PricedLineItem", "TripTotals", "TripPricing",
    "CategoryCosts", "DailyCosts", "CostBreakdown",
    # Engine & cache
    "ValidationIssue", "ValidationResult", "CacheStats", "HealthCheck", "EngineStatus",
    # API
    "MatchRequest", "DayPlanRequest", "SequenceRequest", "TravelTimeRequest", "PriceQuoteRequest", "PriceQuoteResponse",
    "BudgetRequest", "ItineraryCostRequest", "MessageResponse"
]
