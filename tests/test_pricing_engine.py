"""Tests for dynamic pricing, budget optimization and itinerary costs."""
from __future__ import annotations

from datetime import date

import pytest

from itinerary_engine.algorithms import PricingEngine
from itinerary_engine.algorithms.pricing_engine import (
    calculate_advance_booking_discount,
    calculate_group_discount,
)
from itinerary_engine.schemas import (
    DayPlan,
    LineItem,
    Money,
    PricingFactors,
    ScheduledActivity,
    ScheduledMeal,
    TimeSlot,
    TripRequest,
)

from conftest import make_activity


@pytest.fixture
def pricing() -> PricingEngine:
    return PricingEngine()


def test_low_season_weekday_price(pricing):
    breakdown = pricing.calculate_dynamic_price(100.0, PricingFactors())

    assert breakdown.final_price == pytest.approx(76.0)
    assert breakdown.savings == pytest.approx(24.0)
    assert breakdown.price_per_person is None


def test_peak_weekend_high_demand_price(pricing):
    factors = PricingFactors(season="peak", day_of_week="weekend", demand_level="high")
    breakdown = pricing.calculate_dynamic_price(100.0, factors)

    assert breakdown.final_price == pytest.approx(224.25)
    assert breakdown.savings == pytest.approx(-124.25)


def test_group_and_advance_discounts(pricing):
    factors = PricingFactors(group_size=10, advance_booking=90)
    breakdown = pricing.calculate_dynamic_price(200.0, factors)

    assert breakdown.group_discount_multiplier <= 0.85
    assert breakdown.advance_booking_discount >= 0.15
    assert breakdown.price_per_person == pytest.approx(breakdown.final_price / 10, abs=0.01)


@pytest.mark.parametrize("size, expected", [(1, 1.0), (3, 1.0), (4, 0.95), (6, 0.9), (9, 0.9), (10, 0.85), (40, 0.85)])
def test_group_discount_bands(size, expected):
    assert calculate_group_discount(size) == expected


@pytest.mark.parametrize("days, expected", [(0, 0.0), (13, 0.0), (14, 0.05), (30, 0.08), (60, 0.12), (90, 0.15), (365, 0.15)])
def test_advance_booking_bands(days, expected):
    assert calculate_advance_booking_discount(days) == expected


def test_negative_base_price_rejected(pricing):
    with pytest.raises(ValueError):
        pricing.calculate_dynamic_price(-1.0, PricingFactors())


def test_optimize_budget_over_target(pricing):
    items = [
        LineItem(id="hotel", title="Hotel", type="accommodation", price=400),
        LineItem(id="tour", title="Tour", type="activity", price=250),
        LineItem(id="taxi", title="Taxi", type="transportation", price=80),
        LineItem(id="museum", title="Museum", type="activity", price=60),
    ]

    result = pricing.optimize_budget(items, target_budget=500, group_size=2)

    assert result.is_over_budget
    assert result.current_total == pytest.approx(790)
    assert result.overage_amount == pytest.approx(290)
    assert [s.type for s in result.suggestions] == [
        "alternative", "alternative", "alternative", "group_size", "timing",
    ]
    assert [s.impact for s in result.suggestions[:3]] == ["high", "high", "medium"]
    assert result.suggestions[3].potential_savings == pytest.approx(79.0)
    assert result.suggestions[4].potential_savings == pytest.approx(174.0)

    assert [a.id for a in result.alternatives] == ["hotel-alt", "tour-alt"]
    assert result.alternatives[0].alternative_price == pytest.approx(280)
    assert result.alternatives[0].savings == pytest.approx(120)


def test_optimize_budget_large_group_skips_group_suggestion(pricing):
    items = [LineItem(id="a", title="A", type="activity", price=300)]

    result = pricing.optimize_budget(items, target_budget=100, group_size=5)

    assert "group_size" not in [s.type for s in result.suggestions]


def test_optimize_budget_within_target(pricing):
    items = [LineItem(id="a", title="A", type="activity", price=50)]

    result = pricing.optimize_budget(items, target_budget=100)

    assert not result.is_over_budget
    assert result.overage_amount == 0
    assert result.suggestions == []
    assert result.alternatives == []


def test_optimize_budget_without_target(pricing):
    items = [LineItem(id="a", title="A", type="activity", price=5000)]

    result = pricing.optimize_budget(items)

    assert not result.is_over_budget
    assert result.target_budget is None


@pytest.mark.parametrize(
    "travel_date, expected",
    [
        (date(2025, 7, 5), ("peak", "weekend", "high")),
        (date(2025, 3, 11), ("low", "weekday", "low")),
        (date(2025, 10, 15), ("high", "weekday", "medium")),
        (date(2025, 12, 21), ("peak", "weekend", "high")),
    ],
)
def test_seasonal_factors(pricing, travel_date, expected):
    factors = pricing.get_seasonal_factors(travel_date)

    assert (factors.season, factors.day_of_week, factors.demand_level) == expected


def test_trip_pricing(pricing):
    trip = TripRequest(
        destination="Paris",
        start_date=date(2025, 7, 5),
        end_date=date(2025, 7, 8),
        group_size=2,
        items=[LineItem(id="tour", title="Tour", type="activity", price=100)],
    )

    result = pricing.calculate_trip_pricing(trip, today=date(2025, 3, 1))

    assert result.duration_days == 4
    assert result.days_in_advance == 126
    assert result.items[0].current_price == pytest.approx(190.61)
    assert result.totals.per_person_price == pytest.approx(95.3, abs=0.01)
    assert result.recommendations == [
        "Great timing! You're getting advance booking discounts",
        "Consider adding travelers for group discounts",
        "Peak season pricing is in effect",
    ]


def test_trip_pricing_last_minute(pricing):
    trip = TripRequest(
        destination="Paris",
        start_date=date(2025, 3, 11),
        end_date=date(2025, 3, 12),
        group_size=6,
        items=[LineItem(id="tour", title="Tour", type="activity", price=100)],
    )

    result = pricing.calculate_trip_pricing(trip, today=date(2025, 3, 1))

    assert result.recommendations[0].startswith("Book soon")
    assert result.recommendations[1] == "You're getting group discounts!"
    assert result.totals.total_savings > 0


def test_itinerary_cost(paris):
    pricing = PricingEngine(contingency_percent=10)
    plan = DayPlan(
        date=date(2025, 6, 3),
        destination=paris,
        activities=[ScheduledActivity(
            activity=make_activity("a", cost=50.0),
            scheduled_time=TimeSlot(start_time="10:00", end_time="12:00", duration=120),
        )],
        meals=[ScheduledMeal(type="lunch", time="12:30", duration=60, cost=Money(amount=20.0))],
    )

    breakdown = pricing.calculate_itinerary_cost([plan, plan], travelers=2)

    assert breakdown.by_day[0].breakdown.activities == pytest.approx(100)
    assert breakdown.by_day[0].breakdown.meals == pytest.approx(40)
    assert breakdown.by_day[0].breakdown.miscellaneous == pytest.approx(14)
    assert breakdown.by_day[0].total == pytest.approx(154)
    assert breakdown.total.amount == pytest.approx(308)
    assert breakdown.contingency.amount == pytest.approx(30.8)
    assert breakdown.confidence == pytest.approx(0.7)


def test_itinerary_cost_confidence_fallback(paris):
    plan = DayPlan(
        date=date(2025, 6, 3),
        destination=paris,
        activities=[ScheduledActivity(
            activity=make_activity("free", cost=None),
            scheduled_time=TimeSlot(start_time="10:00", end_time="11:00", duration=60),
        )],
    )

    breakdown = PricingEngine().calculate_itinerary_cost([plan])

    assert breakdown.confidence == pytest.approx(0.5)
    assert breakdown.total.amount == 0


def test_empty_itinerary_cost():
    breakdown = PricingEngine().calculate_itinerary_cost([])

    assert breakdown.by_day == []
    assert breakdown.total.amount == 0
    assert breakdown.confidence == pytest.approx(0.5)
