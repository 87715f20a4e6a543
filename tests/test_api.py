"""Integration tests for the Itinerary Engine FastAPI surface."""
from __future__ import annotations

from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

from itinerary_engine.main import app


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def _activity(activity_id: str, category: str = "cultural", duration: int = 120, cost: float = 40.0) -> Dict[str, Any]:
    return {
        "content_type": "activity",
        "id": activity_id,
        "title": f"Activity {activity_id}",
        "category": category,
        "location": "Paris, France",
        "time_slot": {"start_time": "00:00:00", "end_time": "00:00:00", "duration": duration},
        "estimated_cost": {"amount": cost, "currency": "EUR"},
    }


PREFERENCES = {
    "start_date": "2025-06-01",
    "end_date": "2025-06-05",
    "adults": 2,
    "budget_min": 20,
    "budget_max": 200,
    "primary_destination": "Paris",
    "interests": ["cultural"],
}

DESTINATION = {
    "content_type": "destination",
    "id": "dest-paris",
    "title": "Paris",
    "location": "Paris, France",
}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_match_content(client):
    payload = {
        "preferences": PREFERENCES,
        "content": [
            _activity("louvre"),
            _activity("kayak", category="adventure", cost=150),
            {
                "content_type": "transportation", "id": "train", "title": "TGV",
                "type": "train", "from": "Lyon", "to": "Paris",
            },
        ],
        "minimum_score": 0.0,
    }

    response = client.post("/api/engine/match", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body[0]["content_id"] == "louvre"
    assert {item["category"] for item in body} == {"activity", "transportation"}


def test_match_skips_malformed_items(client):
    payload = {
        "preferences": PREFERENCES,
        "content": [
            _activity("louvre"),
            {"content_type": "activity", "id": "broken", "title": "x"},
            {"content_type": "cruise", "id": "ship", "title": "x"},
        ],
    }

    response = client.post("/api/engine/match", json=payload)

    assert response.status_code == 200
    assert [item["content_id"] for item in response.json()] == ["louvre"]


def test_match_rejects_non_object_content(client):
    payload = {"preferences": PREFERENCES, "content": ["louvre"]}

    assert client.post("/api/engine/match", json=payload).status_code == 422


def test_validate_preferences(client):
    response = client.post("/api/engine/preferences/validate", json={"adults": 0})

    body = response.json()
    assert response.status_code == 200
    assert body["valid"] is False
    assert "NO_TRAVELERS" in [e["code"] for e in body["errors"]]


def test_day_plan_validate_and_optimize(client):
    payload = {
        "destination": DESTINATION,
        "date": "2025-06-03",
        "activities": [_activity("a", duration=90), _activity("b", category="culinary", duration=60)],
        "preferences": {
            "pacing": "moderate",
            "meal_preferences": [{"type": "lunch"}],
            "activity_types": ["cultural", "culinary"],
        },
    }

    response = client.post("/api/engine/day-plan", json=payload)
    assert response.status_code == 200
    plan = response.json()
    assert len(plan["activities"]) == 2
    assert plan["total_cost"]["currency"] == "EUR"

    report = client.post("/api/engine/day-plan/validate", json=plan)
    assert report.status_code == 200
    assert report.json()["valid"] is True

    optimized = client.post("/api/engine/day-plan/optimize", json=plan)
    assert optimized.status_code == 200
    assert [a["activity"]["id"] for a in optimized.json()["activities"]] == [
        a["activity"]["id"] for a in plan["activities"]
    ]


def test_day_plan_bad_meal_time(client):
    payload = {
        "destination": DESTINATION,
        "date": "2025-06-03",
        "preferences": {"meal_preferences": [{"type": "lunch", "timing": "lunchtime"}]},
    }

    response = client.post("/api/engine/day-plan", json=payload)

    assert response.status_code == 422


def test_price_quote(client):
    payload = {"base_price": 100, "factors": {"season": "peak", "group_size": 10, "advance_booking": 120}}

    response = client.post("/api/engine/pricing/quote", json=payload)

    body = response.json()
    assert response.status_code == 200
    assert body["group_discount_multiplier"] == 0.85
    assert body["advance_booking_discount"] == 0.15
    assert body["price_per_person"] is not None


def test_price_quote_negative_base(client):
    response = client.post("/api/engine/pricing/quote", json={"base_price": -5})

    assert response.status_code == 422


def test_budget_optimization(client):
    payload = {
        "items": [{"id": "h", "title": "Hotel", "type": "accommodation", "price": 900}],
        "target_budget": 500,
    }

    body = client.post("/api/engine/pricing/budget", json=payload).json()

    assert body["is_over_budget"] is True
    assert body["alternatives"][0]["id"] == "h-alt"


def test_trip_pricing(client):
    payload = {
        "destination": "Paris",
        "start_date": "2030-07-01",
        "end_date": "2030-07-03",
        "group_size": 4,
        "items": [{"id": "t", "title": "Tour", "type": "activity", "price": 100}],
    }

    response = client.post("/api/engine/pricing/trip", json=payload)

    body = response.json()
    assert response.status_code == 200
    assert body["duration_days"] == 3
    assert body["price_factors"]["season"] == "peak"


def test_trip_pricing_rejects_reversed_dates(client):
    payload = {"destination": "Paris", "start_date": "2030-07-03", "end_date": "2030-07-01"}

    assert client.post("/api/engine/pricing/trip", json=payload).status_code == 422


def test_itinerary_cost(client):
    plan = {
        "date": "2025-06-03",
        "destination": DESTINATION,
        "meals": [{"type": "dinner", "time": "19:00", "duration": 60, "cost": {"amount": 30}}],
    }

    body = client.post("/api/engine/pricing/itinerary-cost", json={"day_plans": [plan], "travelers": 2}).json()

    assert body["by_category"]["meals"] == 60
    assert body["total"]["amount"] == 66


def test_seasonal_factors(client):
    response = client.get("/api/engine/pricing/seasonal-factors", params={"travel_date": "2025-03-11"})

    assert response.json() == {"season": "low", "day_of_week": "weekday", "demand_level": "low"}


def test_status_and_cache(client):
    client.post("/api/engine/match", json={"preferences": PREFERENCES, "content": [_activity("a")]})

    status = client.get("/api/engine/status").json()
    assert status["total_requests"] >= 1
    assert status["cache_backend"] == "memory"

    info = client.get("/api/engine/cache").json()
    assert info["details"]["backend"] == "memory"

    cleared = client.delete("/api/engine/cache")
    assert cleared.json()["message"] == "Cache cleared"
    assert client.get("/api/engine/status").json()["cache_stats"]["cache_size"] == 0


def _stop(stop_id: str, location: str, lat: float, lon: float) -> Dict[str, Any]:
    return {
        "id": stop_id,
        "title": location.split(",")[0],
        "location": location,
        "coordinates": {"latitude": lat, "longitude": lon},
    }


STOPS = [
    _stop("lyon", "Lyon, France", 45.7640, 4.8357),
    _stop("versailles", "Versailles, France", 48.8049, 2.1204),
    _stop("paris", "Paris, France", 48.8566, 2.3522),
]


def test_sequence_and_validate(client):
    payload = {
        "destinations": STOPS,
        "preferences": PREFERENCES,
        "constraints": {"start_location": "Paris", "preferred_transportation": ["train"]},
    }

    response = client.post("/api/engine/sequence", json=payload)

    assert response.status_code == 200
    route = response.json()
    assert [d["id"] for d in route] == ["paris", "versailles", "lyon"]
    assert [d["days_allocated"] for d in route] == [2, 2, 1]
    assert route[2]["transportation_to_previous"]["type"] == "train"
    assert route[2]["transportation_to_previous"]["from"] == "Versailles, France"

    report = client.post("/api/engine/sequence/validate", json=route)
    assert report.status_code == 200
    assert report.json()["valid"] is True


def test_sequence_without_coordinates_is_422(client):
    payload = {"destinations": [{"id": "x", "title": "X", "location": "Nowhere"}]}

    assert client.post("/api/engine/sequence", json=payload).status_code == 422


def test_travel_time(client):
    payload = {"from_destination": STOPS[2], "to_destination": STOPS[0], "transport_type": "flight"}

    response = client.post("/api/engine/sequence/travel-time", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert 385 < body["distance"] < 400
    assert body["duration"] == 47
