# schemas/engine_schemas.py
"""
Pydantic v2 schemas for the itinerary engine
Covers content items, preferences, day plans, destination sequencing,
pricing and cache stats
"""

import datetime as dt
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ============================================
# Enums
# ============================================

class ActivityCategory(str, Enum):
    SIGHTSEEING = "sightseeing"
    ADVENTURE = "adventure"
    CULTURAL = "cultural"
    CULINARY = "culinary"
    SHOPPING = "shopping"
    ENTERTAINMENT = "entertainment"
    RELAXATION = "relaxation"
    EDUCATIONAL = "educational"
    NIGHTLIFE = "nightlife"
    SPORTS = "sports"


class AccommodationType(str, Enum):
    HOTEL = "hotel"
    RESORT = "resort"
    VACATION_RENTAL = "vacation-rental"
    HOSTEL = "hostel"
    GUESTHOUSE = "guesthouse"
    BOUTIQUE = "boutique"


class TransportationType(str, Enum):
    FLIGHT = "flight"
    TRAIN = "train"
    BUS = "bus"
    CAR = "car"
    BOAT = "boat"
    TAXI = "taxi"
    WALKING = "walking"
    CYCLING = "cycling"


Difficulty = Literal["easy", "moderate", "challenging"]
Pacing = Literal["relaxed", "moderate", "packed"]
MealType = Literal["breakfast", "lunch", "dinner", "snack"]
MealStyle = Literal["quick", "casual", "fine_dining"]
Priority = Literal["high", "medium", "low"]
Severity = Literal["error", "warning"]
Season = Literal["low", "high", "peak"]
DemandLevel = Literal["low", "medium", "high"]
DayOfWeek = Literal["weekday", "weekend"]
Impact = Literal["low", "medium", "high"]


# ============================================
# Primitives
# ============================================

class Money(BaseModel):
    """Amount in a given currency"""
    amount: float = 0.0
    currency: str = "USD"


class TimeSlot(BaseModel):
    """Time range within a day ("HH:MM" or "HH:MM:SS")"""
    start_time: str = "00:00:00"
    end_time: str = "00:00:00"
    duration: int = Field(0, ge=0)  # minutes


class Coordinates(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class AccessibilityInfo(BaseModel):
    wheelchair_accessible: bool = False
    hearing_impaired: bool = False
    visually_impaired: bool = False
    mobility_assistance: bool = False


# ============================================
# Content Items
# ============================================

class ContentBase(BaseModel):
    """Fields shared by every content item"""
    id: str
    title: str
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    estimated_cost: Optional[Money] = None


class Activity(ContentBase):
    content_type: Literal["activity"] = "activity"
    category: ActivityCategory
    location: str
    time_slot: TimeSlot
    difficulty: Difficulty = "moderate"
    indoor_outdoor: Literal["indoor", "outdoor", "both"] = "both"
    accessibility: AccessibilityInfo = Field(default_factory=AccessibilityInfo)
    seasonality: List[str] = Field(default_factory=list)  # ["spring", "summer"]
    booking_required: bool = False


class Accommodation(ContentBase):
    content_type: Literal["accommodation"] = "accommodation"
    type: AccommodationType
    location: str
    star_rating: Optional[float] = None
    amenities: List[str] = Field(default_factory=list)


class Transportation(ContentBase):
    model_config = ConfigDict(populate_by_name=True)

    content_type: Literal["transportation"] = "transportation"
    type: TransportationType
    from_location: str = Field(..., alias="from")
    to_location: str = Field(..., alias="to")
    duration: int = Field(0, ge=0)  # minutes
    carrier: Optional[str] = None


class Destination(ContentBase):
    content_type: Literal["destination"] = "destination"
    location: str
    country_code: str = ""
    timezone: str = "UTC"
    tourist_season: Literal["peak", "shoulder", "off"] = "shoulder"
    coordinates: Optional[Coordinates] = None
    local_currency: str = "USD"


ContentItem = Annotated[
    Union[Activity, Accommodation, Transportation, Destination],
    Field(discriminator="content_type"),
]


# ============================================
# Preferences & Matching
# ============================================

class UserPreferences(BaseModel):
    """Traveler preferences collected by the planning forms"""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    adults: int = Field(1, ge=0)
    children: int = Field(0, ge=0)
    infants: int = Field(0, ge=0)
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    currency: str = "USD"
    primary_destination: Optional[str] = None
    additional_destinations: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    accommodation_type: str = "any"
    transportation_preference: str = "any"
    special_requests: Optional[str] = None
    dietary_restrictions: List[str] = Field(default_factory=list)
    mobility_requirements: bool = False

    @property
    def total_travelers(self) -> int:
        return self.adults + self.children + self.infants


class ContentMatchScore(BaseModel):
    """How well a single content item matches the preferences"""
    content_id: str
    score: float = Field(..., ge=0, le=1)
    reasons: List[str] = Field(default_factory=list)
    category: str


class DestinationConstraint(BaseModel):
    destination: str
    priority: Literal["primary", "additional"]


class TimeConstraint(BaseModel):
    start_date: date
    end_date: date
    trip_days: int


class BudgetConstraint(BaseModel):
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    currency: str = "USD"
    budget_category: Literal["budget", "mid-range", "luxury"] = "mid-range"


class MatchingCriteria(BaseModel):
    """Preferences plus the constraints derived from them"""
    user_preferences: UserPreferences
    destination_constraints: List[DestinationConstraint] = Field(default_factory=list)
    time_constraints: List[TimeConstraint] = Field(default_factory=list)
    budget_constraints: List[BudgetConstraint] = Field(default_factory=list)


# ============================================
# Day Planning
# ============================================

class MealPreference(BaseModel):
    type: MealType
    timing: Optional[str] = None  # "12:30"
    style: MealStyle = "casual"
    budget: Money = Field(default_factory=Money)


class DayPlanningPreferences(BaseModel):
    pacing: Pacing = "moderate"
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    meal_preferences: List[MealPreference] = Field(default_factory=list)
    activity_types: List[str] = Field(default_factory=list)
    max_activities: int = Field(6, ge=0)
    budget_for_day: Optional[Money] = None
    accessibility: bool = False


class ScheduledActivity(BaseModel):
    activity: Activity
    scheduled_time: TimeSlot
    buffer_time: int = 0  # minutes for travel/preparation
    priority: Priority = "low"
    score: float = 0.0


class ScheduledMeal(BaseModel):
    type: MealType
    time: str
    duration: int  # minutes
    cost: Money = Field(default_factory=Money)
    venue: Optional[str] = None


class DayPlan(BaseModel):
    date: dt.date
    destination: Destination
    activities: List[ScheduledActivity] = Field(default_factory=list)
    meals: List[ScheduledMeal] = Field(default_factory=list)
    free_time: List[TimeSlot] = Field(default_factory=list)
    total_cost: Money = Field(default_factory=Money)
    pacing: Pacing = "moderate"
    satisfaction: float = Field(0.0, ge=0, le=1)


class DayPlanIssue(BaseModel):
    type: Literal["timing", "budget", "logistics", "preferences"]
    severity: Severity
    message: str
    affected_items: List[str] = Field(default_factory=list)


class DayPlanValidation(BaseModel):
    valid: bool
    issues: List[DayPlanIssue] = Field(default_factory=list)
    overall_score: float = Field(..., ge=0, le=1)
    suggestions: List[str] = Field(default_factory=list)


# ============================================
# Destination Sequencing
# ============================================

class SequencingConstraints(BaseModel):
    max_travel_time_per_day: int = Field(480, ge=0)  # minutes
    preferred_transportation: List[str] = Field(default_factory=list)
    must_visit_order: List[str] = Field(default_factory=list)  # destination ids
    start_location: Optional[str] = None
    end_location: Optional[str] = None


class SequencedDestination(Destination):
    """Destination placed in the trip order with its dates"""
    sequence_order: int = Field(..., ge=1)
    arrival_date: dt.date
    departure_date: dt.date
    days_allocated: int
    travel_time_from_previous: int = 0  # minutes
    transportation_to_previous: Optional[Transportation] = None


class TravelTimeResult(BaseModel):
    duration: int  # minutes
    distance: float  # km
    transportation_options: List[Transportation] = Field(default_factory=list)
    cost: Money


class SequenceIssue(BaseModel):
    type: Literal["travel_time", "timing", "cost", "logistics", "preferences"]
    severity: Severity
    message: str
    affected_destinations: List[str] = Field(default_factory=list)


class SequenceValidation(BaseModel):
    valid: bool
    issues: List[SequenceIssue] = Field(default_factory=list)
    total_travel_time: int = 0  # minutes
    total_distance: float = 0.0  # km


# ============================================
# Pricing
# ============================================

class PricingFactors(BaseModel):
    """Inputs for dynamic pricing"""
    season: Season = "low"
    day_of_week: DayOfWeek = "weekday"
    advance_booking: int = 0  # days in advance
    group_size: int = Field(1, ge=1)
    duration: int = 1  # days
    destination: str = ""
    activity_type: str = ""
    demand_level: DemandLevel = "medium"


class SeasonalFactors(BaseModel):
    season: Season
    day_of_week: DayOfWeek
    demand_level: DemandLevel


class LineItem(BaseModel):
    """Priced component of a trip"""
    id: str
    title: str
    type: str  # "activity", "accommodation", "transportation"
    price: float = Field(..., ge=0)


class BudgetSuggestion(BaseModel):
    type: Literal["reduce_cost", "alternative", "timing", "group_size"]
    title: str
    description: str
    potential_savings: float
    impact: Impact


class Alternative(BaseModel):
    id: str
    title: str
    original_price: float
    alternative_price: float
    savings: float
    type: str
    description: str
    tradeoffs: List[str] = Field(default_factory=list)


class BudgetOptimization(BaseModel):
    current_total: float
    target_budget: Optional[float] = None
    is_over_budget: bool
    overage_amount: float
    suggestions: List[BudgetSuggestion] = Field(default_factory=list)
    alternatives: List[Alternative] = Field(default_factory=list)


class TripRequest(BaseModel):
    destination: str
    start_date: date
    end_date: date
    group_size: int = Field(1, ge=1)
    items: List[LineItem] = Field(default_factory=list)


class PricedLineItem(BaseModel):
    item: LineItem
    original_price: float
    current_price: float
    savings: float


class TripTotals(BaseModel):
    original_price: float
    current_price: float
    total_savings: float
    per_person_price: float


class TripPricing(BaseModel):
    items: List[PricedLineItem]
    totals: TripTotals
    price_factors: SeasonalFactors
    days_in_advance: int
    duration_days: int
    recommendations: List[str] = Field(default_factory=list)


class CategoryCosts(BaseModel):
    activities: float = 0.0
    meals: float = 0.0
    miscellaneous: float = 0.0

    @property
    def total(self) -> float:
        return self.activities + self.meals + self.miscellaneous


class DailyCosts(BaseModel):
    date: dt.date
    total: float
    breakdown: CategoryCosts


class CostBreakdown(BaseModel):
    total: Money
    by_category: CategoryCosts
    by_day: List[DailyCosts] = Field(default_factory=list)
    contingency: Money
    confidence: float = Field(..., ge=0, le=1)


# ============================================
# Engine & Cache
# ============================================

class ValidationIssue(BaseModel):
    field: str
    message: str
    code: Optional[str] = None
    suggestion: Optional[str] = None


class ValidationResult(BaseModel):
    valid: bool
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)


class CacheStats(BaseModel):
    hit_rate: float = 0.0
    total_hits: int = 0
    total_misses: int = 0
    cache_size: int = 0
    last_clear_time: datetime = Field(default_factory=datetime.utcnow)


class HealthCheck(BaseModel):
    component: str
    status: Literal["healthy", "warning", "error"]
    message: Optional[str] = None
    last_checked: datetime = Field(default_factory=datetime.utcnow)


class EngineStatus(BaseModel):
    version: str
    uptime_seconds: float
    total_requests: int
    failed_requests: int
    cache_backend: str
    cache_stats: CacheStats
    health_checks: List[HealthCheck] = Field(default_factory=list)


# ============================================
# API Requests
# ============================================

class MatchRequest(BaseModel):
    preferences: UserPreferences
    # Raw items; the matcher validates each one and skips those that fail
    content: List[Dict[str, Any]] = Field(default_factory=list)
    minimum_score: float = Field(0.0, ge=0, le=1)


class DayPlanRequest(BaseModel):
    destination: Destination
    date: dt.date
    activities: List[Activity] = Field(default_factory=list)
    preferences: DayPlanningPreferences = Field(default_factory=DayPlanningPreferences)


class SequenceRequest(BaseModel):
    destinations: List[Destination] = Field(default_factory=list)
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    constraints: SequencingConstraints = Field(default_factory=SequencingConstraints)


class TravelTimeRequest(BaseModel):
    from_destination: Destination
    to_destination: Destination
    transport_type: str = "car"


class PriceQuoteRequest(BaseModel):
    base_price: float = Field(..., ge=0)
    factors: PricingFactors = Field(default_factory=PricingFactors)


class PriceQuoteResponse(BaseModel):
    base_price: float
    seasonal_multiplier: float
    demand_multiplier: float
    day_of_week_multiplier: float
    group_discount_multiplier: float
    advance_booking_discount: float
    final_price: float
    savings: float
    price_per_person: Optional[float] = None


class BudgetRequest(BaseModel):
    items: List[LineItem] = Field(default_factory=list)
    target_budget: Optional[float] = None
    group_size: int = Field(1, ge=1)


class ItineraryCostRequest(BaseModel):
    day_plans: List[DayPlan] = Field(default_factory=list)
    travelers: int = Field(1, ge=1)


class MessageResponse(BaseModel):
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
