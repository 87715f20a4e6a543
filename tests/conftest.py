"""Pytest configuration and shared fixtures for the itinerary engine."""
from __future__ import annotations

import sys
from datetime import date
from pathlib import Path
from typing import List

import pytest

# Ensure the project root is on sys.path so that `import itinerary_engine` works under pytest.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from itinerary_engine.schemas import (  # noqa: E402
    AccessibilityInfo,
    Activity,
    DayPlanningPreferences,
    Destination,
    MealPreference,
    Money,
    TimeSlot,
    UserPreferences,
)


class FakeClock:
    """Manually advanced time source for cache tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_activity(
    activity_id: str,
    category: str = "cultural",
    duration: int = 120,
    cost: float | None = 50.0,
    location: str = "Paris, France",
    **extra,
) -> Activity:
    return Activity(
        id=activity_id,
        title=extra.pop("title", f"Activity {activity_id}"),
        description=extra.pop("description", ""),
        category=category,
        location=location,
        time_slot=TimeSlot(start_time="00:00:00", end_time="00:00:00", duration=duration),
        estimated_cost=Money(amount=cost) if cost is not None else None,
        **extra,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def paris() -> Destination:
    return Destination(id="dest-paris", title="Paris", location="Paris, France", country_code="FR")


@pytest.fixture
def activities() -> List[Activity]:
    return [
        make_activity("louvre", "cultural", 180, 20.0, title="Louvre Museum", tags=["art", "museum"]),
        make_activity("food-tour", "culinary", 120, 95.0, title="Marais Food Tour", tags=["food"]),
        make_activity("eiffel", "sightseeing", 90, 30.0, title="Eiffel Tower",
                      accessibility=AccessibilityInfo(wheelchair_accessible=True)),
        make_activity("seine-kayak", "adventure", 60, 45.0, title="Seine Kayak", difficulty="challenging"),
        make_activity("versailles", "cultural", 240, 70.0, title="Versailles Day Trip", booking_required=True),
    ]


@pytest.fixture
def preferences() -> UserPreferences:
    return UserPreferences(
        start_date=date(2025, 6, 1),
        end_date=date(2025, 6, 5),
        adults=2,
        budget_min=20,
        budget_max=200,
        primary_destination="Paris",
        interests=["cultural", "food"],
    )


@pytest.fixture
def day_preferences() -> DayPlanningPreferences:
    return DayPlanningPreferences(
        pacing="moderate",
        meal_preferences=[
            MealPreference(type="lunch", budget=Money(amount=25.0)),
            MealPreference(type="dinner", style="fine_dining", budget=Money(amount=80.0)),
        ],
        activity_types=["cultural", "culinary"],
    )
