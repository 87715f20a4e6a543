"""Tests for the ItineraryEngine facade."""
from __future__ import annotations

from datetime import date
from types import SimpleNamespace

import pytest

from itinerary_engine import __version__
from itinerary_engine.algorithms import DayPlanner, MissingCoordinatesError, PreferenceMatcher, PricingEngine
from itinerary_engine.cache import MemoryCache, RedisCache
from itinerary_engine.engine import ItineraryEngine, build_engine
from itinerary_engine.schemas import (
    Coordinates,
    DayPlanningPreferences,
    Destination,
    PricingFactors,
    SequencingConstraints,
    UserPreferences,
)


@pytest.fixture
def engine(clock) -> ItineraryEngine:
    return ItineraryEngine(
        matcher=PreferenceMatcher(),
        planner=DayPlanner(),
        pricing=PricingEngine(),
        cache=MemoryCache(max_size=50, default_ttl=600, clock=clock),
    )


def _codes(result):
    return [issue.code for issue in result.errors]


def test_valid_preferences(engine, preferences):
    result = engine.validate_preferences(preferences)

    assert result.valid
    assert result.errors == []
    assert result.warnings == []


def test_missing_required_fields(engine):
    result = engine.validate_preferences(UserPreferences())

    assert not result.valid
    assert _codes(result) == ["REQUIRED_FIELD", "REQUIRED_FIELD", "REQUIRED_FIELD"]


def test_end_before_start(engine, preferences):
    prefs = preferences.model_copy(update={"end_date": date(2025, 5, 30)})

    assert _codes(engine.validate_preferences(prefs)) == ["INVALID_DATE_RANGE"]


def test_same_day_trip_is_invalid_range(engine, preferences):
    prefs = preferences.model_copy(update={"end_date": preferences.start_date})

    assert _codes(engine.validate_preferences(prefs)) == ["INVALID_DATE_RANGE"]


def test_excessive_duration(engine, preferences):
    prefs = preferences.model_copy(update={"end_date": date(2025, 7, 15)})

    assert _codes(engine.validate_preferences(prefs)) == ["EXCESSIVE_DURATION"]


def test_budget_range(engine, preferences):
    prefs = preferences.model_copy(update={"budget_min": 500, "budget_max": 100})

    assert _codes(engine.validate_preferences(prefs)) == ["INVALID_BUDGET_RANGE"]


def test_no_travelers(engine, preferences):
    prefs = preferences.model_copy(update={"adults": 0})

    assert _codes(engine.validate_preferences(prefs)) == ["NO_TRAVELERS"]


def test_large_group_warning(engine, preferences):
    prefs = preferences.model_copy(update={"adults": 18, "children": 3})
    result = engine.validate_preferences(prefs)

    assert result.valid
    assert result.warnings[0].message == "Large group travel may have limited options"
    assert result.warnings[0].suggestion == "Consider splitting into smaller groups"


def test_rank_content_uses_cache(engine, activities, preferences):
    first = engine.rank_content(preferences, activities)
    second = engine.rank_content(preferences, activities)

    assert [s.content_id for s in first] == [s.content_id for s in second]
    stats = engine.cache.get_stats()
    assert stats.total_hits == 1
    assert stats.total_misses == 1


def test_rank_content_cache_tracks_content_changes(engine, activities, preferences):
    engine.rank_content(preferences, activities)
    engine.rank_content(preferences, activities[:2])

    assert engine.cache.get_stats().total_hits == 0


def test_rank_content_minimum_score_applies_to_cached(engine, activities, preferences):
    everything = engine.rank_content(preferences, activities)
    threshold = everything[0].score

    top = engine.rank_content(preferences, activities, minimum_score=threshold)

    assert [s.content_id for s in top] == [everything[0].content_id]


def test_plan_and_validate_day(engine, paris, activities, day_preferences):
    plan = engine.plan_day(paris, date(2025, 6, 3), activities, day_preferences)

    assert engine.validate_day_plan(plan).valid


def test_failed_requests_are_counted(engine, paris, activities):
    with pytest.raises(ValueError):
        engine.plan_day(
            paris, date(2025, 6, 3), activities,
            DayPlanningPreferences(start_time="bogus"),
        )

    status = engine.get_engine_status()
    assert status.total_requests == 1
    assert status.failed_requests == 1
    assert any(c.component == "engine" and c.status == "warning" for c in status.health_checks)


def test_sequence_destinations(engine, preferences):
    stops = [
        Destination(id="lyon", title="Lyon", location="Lyon, France",
                    coordinates=Coordinates(latitude=45.7640, longitude=4.8357)),
        Destination(id="paris", title="Paris", location="Paris, France",
                    coordinates=Coordinates(latitude=48.8566, longitude=2.3522)),
    ]

    route = engine.sequence_destinations(stops, preferences, SequencingConstraints(start_location="Paris"))

    assert [d.id for d in route] == ["paris", "lyon"]
    assert [d.days_allocated for d in route] == [3, 2]
    assert engine.validate_sequence(route).valid
    assert engine.calculate_travel_time(stops[1], stops[0]).duration == route[1].travel_time_from_previous
    assert engine.get_engine_status().total_requests == 3


def test_sequence_without_coordinates_is_counted_as_failure(engine, preferences):
    stop = Destination(id="x", title="X", location="Nowhere")

    with pytest.raises(MissingCoordinatesError):
        engine.sequence_destinations([stop], preferences, SequencingConstraints())

    assert engine.get_engine_status().failed_requests == 1


def test_engine_status(engine):
    engine.quote_price(100, PricingFactors())
    status = engine.get_engine_status()

    assert status.version == __version__
    assert status.cache_backend == "memory"
    assert status.total_requests == 1
    assert {c.component for c in status.health_checks} >= {
        "preference_matcher", "day_planner", "destination_sequencer", "pricing_engine", "cache",
    }
    assert all(c.status == "healthy" for c in status.health_checks)


def test_clear_cache(engine, activities, preferences):
    engine.rank_content(preferences, activities)
    engine.clear_cache()

    assert engine.cache.get_stats().cache_size == 0


def _settings(**overrides):
    values = dict(
        CACHE_BACKEND="memory",
        CACHE_MAX_SIZE=25,
        CACHE_TTL=120,
        CACHE_SWEEP_INTERVAL=60,
        REDIS_HOST="localhost",
        REDIS_PORT=6379,
        REDIS_DB=0,
        REDIS_PASSWORD="",
        REDIS_KEY_PREFIX="itinerary:",
        MATCHING_PROFILE="precise",
        DAY_PLANNING_PROFILE="relaxed",
        SEQUENCING_PROFILE="fast",
        BASE_CURRENCY="EUR",
        CONTINGENCY_PERCENT=20.0,
        MAX_TRIP_DAYS=14,
        LARGE_GROUP_SIZE=10,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_build_engine_from_settings(preferences):
    engine = build_engine(_settings())

    assert isinstance(engine.cache, MemoryCache)
    assert engine.cache.max_size == 25
    assert engine.matcher.weights.interests == pytest.approx(0.40)
    assert engine.planner.config.max_activities_per_day == 3
    assert engine.sequencer.config.optimization_algorithm == "nearest_neighbor"
    assert engine.pricing.base_currency == "EUR"

    prefs = preferences.model_copy(update={"end_date": date(2025, 6, 20)})
    assert _codes(engine.validate_preferences(prefs)) == ["EXCESSIVE_DURATION"]


def test_build_engine_with_redis(monkeypatch):
    sentinel = object()
    captured = {}

    def fake_client(**kwargs):
        captured.update(kwargs)
        return sentinel

    monkeypatch.setattr("itinerary_engine.cache.get_redis_client", fake_client)

    engine = build_engine(_settings(CACHE_BACKEND="redis", REDIS_HOST="cache.internal"))

    assert isinstance(engine.cache, RedisCache)
    assert engine.cache.redis is sentinel
    assert captured["host"] == "cache.internal"
