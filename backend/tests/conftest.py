"""
Shared fixtures: in-memory SQLite, rate limiting off, mock email, local agents.
Environment is pinned before the app is imported so a developer .env cannot leak in.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GMAIL_USER"] = ""
os.environ["GMAIL_APP_PASSWORD"] = ""
os.environ["OMNIDIMENSION_API_KEY"] = ""
os.environ["OMNIDIMENSION_ENDPOINT"] = ""
os.environ["ADMIN_API_KEY"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.core.rate_limiting import limiter
from app.db.database import SessionLocal, engine, init_db
from app.db.models import Base
from app.main import app

limiter.enabled = False

TRIP_FORM = {
    "destination": "Bali",
    "duration": "1 week",
    "travelType": "honeymoon",
    "budget": "mid-range",
    "departureDate": "2026-12-01",
    "returnDate": "2026-12-08",
    "email": "traveller@example.com",
}


def make_trip(**overrides):
    """Attribute-style trip for service-level tests."""
    fields = {
        "destination": "Bali",
        "duration": "1 week",
        "travel_type": "honeymoon",
        "budget": "mid-range",
        "departure_date": "2026-12-01",
        "return_date": "2026-12-08",
        "email": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.fixture
def db_session():
    Base.metadata.drop_all(bind=engine)
    init_db()
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client(db_session):
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def trip_form():
    return dict(TRIP_FORM)
