"""
Itinerary Engine
Composes matching, day planning, destination sequencing, pricing and
caching behind one facade
"""

import threading
import time
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from loguru import logger
from pydantic import TypeAdapter

from . import __version__
from .algorithms import DayPlanner, DestinationSequencer, PreferenceMatcher, PricingEngine
from .algorithms.pricing_engine import PriceBreakdown
from .cache import CacheService, create_cache_service, fingerprint, generate_cache_key
from .cache.redis_client import check_redis_health
from .schemas import (
    Activity,
    BudgetOptimization,
    ContentMatchScore,
    CostBreakdown,
    DayPlan,
    DayPlanningPreferences,
    DayPlanValidation,
    Destination,
    EngineStatus,
    HealthCheck,
    LineItem,
    PricingFactors,
    SeasonalFactors,
    SequencedDestination,
    SequenceValidation,
    SequencingConstraints,
    TravelTimeResult,
    TripPricing,
    TripRequest,
    UserPreferences,
    ValidationIssue,
    ValidationResult,
)

_scores_adapter = TypeAdapter(List[ContentMatchScore])


class ItineraryEngine:
    """
    Facade over the itinerary services

    Usage:
        engine = build_engine(settings)
        result = engine.validate_preferences(prefs)
        if result.valid:
            scores = engine.rank_content(prefs, content, minimum_score=0.5)
    """

    def __init__(
        self,
        matcher: PreferenceMatcher,
        planner: DayPlanner,
        pricing: PricingEngine,
        cache: CacheService,
        max_trip_days: int = 30,
        large_group_size: int = 20,
        sequencer: Optional[DestinationSequencer] = None
    ):
        self.matcher = matcher
        self.planner = planner
        self.pricing = pricing
        self.cache = cache
        self.sequencer = sequencer or DestinationSequencer()
        self.max_trip_days = max_trip_days
        self.large_group_size = large_group_size

        self._started_at = time.monotonic()
        self._lock = threading.Lock()
        self._total_requests = 0
        self._failed_requests = 0

        logger.info(f"ItineraryEngine {__version__} ready (cache={cache.backend})")

    @contextmanager
    def _tracked(self, operation: str):
        with self._lock:
            self._total_requests += 1
        try:
            yield
        except Exception as e:
            with self._lock:
                self._failed_requests += 1
            logger.error(f"{operation} failed: {e}")
            raise

    # ============================================
    # Preferences & matching
    # ============================================

    def validate_preferences(self, preferences: UserPreferences) -> ValidationResult:
        """
        Validate trip preferences

        Errors:
        - REQUIRED_FIELD: start date, end date or primary destination missing
        - INVALID_DATE_RANGE: start date not before end date
        - EXCESSIVE_DURATION / INSUFFICIENT_DURATION: trip length out of range
        - INVALID_BUDGET_RANGE: minimum budget above maximum
        - NO_TRAVELERS: no adults, children or infants

        Warnings:
        - Large groups (more than 20 travelers)
        """
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        with self._tracked("validate_preferences"):
            if not preferences.start_date:
                errors.append(ValidationIssue(
                    field="start_date", message="Start date is required", code="REQUIRED_FIELD"
                ))
            if not preferences.end_date:
                errors.append(ValidationIssue(
                    field="end_date", message="End date is required", code="REQUIRED_FIELD"
                ))
            if not preferences.primary_destination:
                errors.append(ValidationIssue(
                    field="primary_destination",
                    message="Primary destination is required",
                    code="REQUIRED_FIELD"
                ))

            if preferences.start_date and preferences.end_date:
                days = (preferences.end_date - preferences.start_date).days
                if days <= 0:
                    errors.append(ValidationIssue(
                        field="end_date",
                        message="End date must be after start date",
                        code="INVALID_DATE_RANGE"
                    ))
                elif days > self.max_trip_days:
                    errors.append(ValidationIssue(
                        field="end_date",
                        message=f"Trip duration cannot exceed {self.max_trip_days} days",
                        code="EXCESSIVE_DURATION"
                    ))
                elif days < 1:
                    errors.append(ValidationIssue(
                        field="end_date",
                        message="Trip must be at least 1 day",
                        code="INSUFFICIENT_DURATION"
                    ))

            if (
                preferences.budget_min is not None
                and preferences.budget_max is not None
                and preferences.budget_min > preferences.budget_max
            ):
                errors.append(ValidationIssue(
                    field="budget_min",
                    message="Minimum budget cannot exceed maximum budget",
                    code="INVALID_BUDGET_RANGE"
                ))

            if preferences.total_travelers == 0:
                errors.append(ValidationIssue(
                    field="adults", message="At least one traveler is required", code="NO_TRAVELERS"
                ))
            elif preferences.total_travelers > self.large_group_size:
                warnings.append(ValidationIssue(
                    field="adults",
                    message="Large group travel may have limited options",
                    suggestion="Consider splitting into smaller groups"
                ))

        result = ValidationResult(valid=not errors, errors=errors, warnings=warnings)
        logger.debug(f"Preferences validated: valid={result.valid}, errors={len(errors)}, warnings={len(warnings)}")
        return result

    def rank_content(
        self,
        preferences: UserPreferences,
        content: Sequence[Union[Any, Dict[str, Any]]],
        minimum_score: float = 0.0
    ) -> List[ContentMatchScore]:
        """
        Score and filter content, caching the full ranking

        The cache key combines the preference key with a fingerprint of the
        content so a changed catalogue never serves stale scores.
        """
        with self._tracked("rank_content"):
            key = f"match:{generate_cache_key(preferences)}:{fingerprint(_content_payload(content))}"

            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Match cache hit: {key}")
                scores = _scores_adapter.validate_python(cached)
            else:
                scores = self.matcher.score_content(content, preferences)
                self.cache.set(key, [s.model_dump(mode="json") for s in scores])

            return self.matcher.filter_by_score(scores, minimum_score)

    # ============================================
    # Day planning
    # ============================================

    def plan_day(
        self,
        destination: Destination,
        day: date,
        activities: List[Activity],
        preferences: DayPlanningPreferences
    ) -> DayPlan:
        with self._tracked("plan_day"):
            return self.planner.plan_day(destination, day, activities, preferences)

    def validate_day_plan(self, plan: DayPlan) -> DayPlanValidation:
        with self._tracked("validate_day_plan"):
            return self.planner.validate_day_plan(plan)

    def optimize_day_schedule(self, plan: DayPlan) -> DayPlan:
        with self._tracked("optimize_day_schedule"):
            return self.planner.optimize_day_schedule(plan)

    # ============================================
    # Destination sequencing
    # ============================================

    def sequence_destinations(
        self,
        destinations: List[Destination],
        preferences: UserPreferences,
        constraints: SequencingConstraints,
        today: Optional[date] = None
    ) -> List[SequencedDestination]:
        with self._tracked("sequence_destinations"):
            return self.sequencer.optimize_sequence(destinations, preferences, constraints, today)

    def calculate_travel_time(
        self,
        origin: Destination,
        target: Destination,
        transport_type: str = "car"
    ) -> TravelTimeResult:
        with self._tracked("calculate_travel_time"):
            return self.sequencer.calculate_travel_time(origin, target, transport_type)

    def validate_sequence(self, sequence: List[SequencedDestination]) -> SequenceValidation:
        with self._tracked("validate_sequence"):
            return self.sequencer.validate_sequence(sequence)

    # ============================================
    # Pricing
    # ============================================

    def quote_price(self, base_price: float, factors: PricingFactors) -> PriceBreakdown:
        with self._tracked("quote_price"):
            return self.pricing.calculate_dynamic_price(base_price, factors)

    def optimize_budget(
        self,
        items: List[LineItem],
        target_budget: Optional[float] = None,
        group_size: int = 1
    ) -> BudgetOptimization:
        with self._tracked("optimize_budget"):
            return self.pricing.optimize_budget(items, target_budget, group_size)

    def get_seasonal_factors(self, travel_date: date) -> SeasonalFactors:
        return self.pricing.get_seasonal_factors(travel_date)

    def price_trip(self, trip: TripRequest, today: Optional[date] = None) -> TripPricing:
        with self._tracked("price_trip"):
            return self.pricing.calculate_trip_pricing(trip, today)

    def estimate_itinerary_cost(self, day_plans: List[DayPlan], travelers: int = 1) -> CostBreakdown:
        with self._tracked("estimate_itinerary_cost"):
            return self.pricing.calculate_itinerary_cost(day_plans, travelers)

    # ============================================
    # Status & lifecycle
    # ============================================

    def get_engine_status(self) -> EngineStatus:
        """Version, uptime, request counters, cache stats and component health"""
        stats = self.cache.get_stats()
        now = datetime.utcnow()

        checks = [
            HealthCheck(component="preference_matcher", status="healthy", last_checked=now),
            HealthCheck(component="day_planner", status="healthy", last_checked=now),
            HealthCheck(component="destination_sequencer", status="healthy", last_checked=now),
            HealthCheck(component="pricing_engine", status="healthy", last_checked=now),
            self._cache_health(now),
        ]

        with self._lock:
            total, failed = self._total_requests, self._failed_requests

        if total and failed / total > 0.1:
            checks.append(HealthCheck(
                component="engine",
                status="warning",
                message=f"{failed}/{total} requests failed",
                last_checked=now
            ))

        return EngineStatus(
            version=__version__,
            uptime_seconds=round(time.monotonic() - self._started_at, 1),
            total_requests=total,
            failed_requests=failed,
            cache_backend=self.cache.backend,
            cache_stats=stats,
            health_checks=checks
        )

    def _cache_health(self, now: datetime) -> HealthCheck:
        if self.cache.backend == "redis" and not check_redis_health(self.cache.redis):
            return HealthCheck(
                component="cache", status="error", message="Redis is unreachable", last_checked=now
            )
        return HealthCheck(component="cache", status="healthy", message=self.cache.backend, last_checked=now)

    def get_cache_info(self) -> Dict[str, Any]:
        return self.cache.get_cache_info()

    def clear_cache(self) -> None:
        self.cache.clear()

    def start(self) -> None:
        self.cache.start_sweeper()

    def shutdown(self) -> None:
        self.cache.shutdown()
        logger.info("ItineraryEngine shut down")


def _content_payload(content: Sequence[Any]) -> List[Any]:
    return [
        item.model_dump(mode="json", by_alias=True) if hasattr(item, "model_dump") else item
        for item in content
    ]


def build_engine(settings) -> ItineraryEngine:
    """
    Construct the engine from configuration

    Args:
        settings: Settings instance (see config.py)
    """
    if settings.CACHE_BACKEND == "redis":
        cache = create_cache_service(
            "redis",
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=settings.REDIS_DB,
            password=settings.REDIS_PASSWORD,
            default_ttl=settings.CACHE_TTL,
            key_prefix=settings.REDIS_KEY_PREFIX
        )
    else:
        cache = create_cache_service(
            settings.CACHE_BACKEND,
            max_size=settings.CACHE_MAX_SIZE,
            default_ttl=settings.CACHE_TTL,
            sweep_interval=settings.CACHE_SWEEP_INTERVAL
        )

    return ItineraryEngine(
        matcher=PreferenceMatcher.from_profile(settings.MATCHING_PROFILE),
        planner=DayPlanner.from_profile(settings.DAY_PLANNING_PROFILE),
        sequencer=DestinationSequencer.from_profile(settings.SEQUENCING_PROFILE),
        pricing=PricingEngine(
            contingency_percent=settings.CONTINGENCY_PERCENT,
            base_currency=settings.BASE_CURRENCY
        ),
        cache=cache,
        max_trip_days=settings.MAX_TRIP_DAYS,
        large_group_size=settings.LARGE_GROUP_SIZE
    )
