"""
Shared pytest fixtures for the API tests.

The environment is configured before the application is imported so the
app, `get_db` and background tasks all share one in-memory SQLite database.
"""
import os
import tempfile
import uuid

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ALLOW_DEV_AUTH"] = "1"
os.environ["APP_ENV"] = "test"
os.environ["LOG_PATH"] = os.path.join(tempfile.gettempdir(), "wayfarer-tests", "api.log")

import pytest
from fastapi.testclient import TestClient

from database import Base, engine, SessionLocal
from main import app


def user_headers(user_id: str) -> dict:
    return {"X-User-ID": user_id}


def shadow_headers(shadow_id: str) -> dict:
    return {"X-Shadow-User-ID": shadow_id}


def make_trip_payload(name="Tokyo Week", start="2025-04-01", end="2025-04-07", **overrides) -> dict:
    """A small but complete trip: two destinations, two day plans with activities."""
    tokyo = f"dest-tokyo-{uuid.uuid4().hex[:8]}"
    kyoto = f"dest-kyoto-{uuid.uuid4().hex[:8]}"
    payload = {
        "name": name,
        "description": "Temples, food and neon",
        "summary": "A first week in Japan",
        "traveler_count": 2,
        "start_date": start,
        "end_date": end,
        "timezone": "Asia/Tokyo",
        "traveler_type": "couple",
        "season": "spring",
        "budget_level": "mid",
        "pace": "balanced",
        "tags": ["food", "culture"],
        "destinations": [
            {"id": tokyo, "city": "Tokyo", "country": "Japan"},
            {"id": kyoto, "city": "Kyoto", "country": "Japan"},
        ],
        "day_plans": [
            {
                "date": start,
                "destinations": [{"destination_id": tokyo}],
                "activities": [
                    {"title": "Dinner in Shinjuku", "time_of_day": "end"},
                    {"title": "Senso-ji", "time_of_day": "start"},
                    {"title": "Ueno park", "time_of_day": "mid"},
                ],
            },
            {
                "date": end,
                "destinations": [
                    {"destination_id": tokyo, "part_of_day": "morning"},
                    {"destination_id": kyoto, "part_of_day": "evening"},
                ],
                "activities": [{"title": "Shinkansen", "time_of_day": "mid", "type": "transportation"}],
            },
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def create_trip(client):
    """Create a trip through the API and return its JSON."""
    def _create(owner_headers, **overrides):
        response = client.post("/trips/", json=make_trip_payload(**overrides), headers=owner_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def publish(client):
    def _publish(trip_id, owner_headers):
        response = client.post(f"/public-trips/{trip_id}/visibility", json={"visibility": "public"}, headers=owner_headers)
        assert response.status_code == 200, response.text
        return response.json()
    return _publish
