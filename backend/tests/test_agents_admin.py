"""Agent registry, admin toggle, analytics, log export routes and health probes."""

from app.core.config import settings
from app.db.repositories import AgentLogRepository

API = "/api"
PERSONA_NAMES = ["TravelBot Pro", "VoyageAI", "JourneyGenie", "WanderBot", "ExploreAI"]


def agent_id(client, name):
    return next(a["id"] for a in client.get(f"{API}/agents").json() if a["name"] == name)


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------

def test_default_agents_seeded(client):
    agents = client.get(f"{API}/agents").json()
    assert [a["name"] for a in agents] == PERSONA_NAMES
    assert all(a["isActive"] for a in agents)
    assert agents[0]["avgConfirmationTime"] == "2 min"
    assert agents[0]["avgPrice"] == "220000.00"


def test_disabled_agent_stops_offering(client, trip_form):
    target = agent_id(client, "TravelBot Pro")
    response = client.patch(f"{API}/agents/{target}", json={"isActive": False})
    assert response.status_code == 200
    assert response.json()["isActive"] is False

    body = client.post(f"{API}/trips", json=trip_form).json()
    assert "TravelBot Pro" not in [d["agent"] for d in body["deals"]]
    assert [d["agent"] for d in body["deals"]] == ["VoyageAI", "WanderBot", "JourneyGenie"]
    assert len(client.get(f"{API}/logs").json()) == 4

    client.patch(f"{API}/agents/{target}", json={"isActive": True})
    assert client.get(f"{API}/analytics").json()["activeAgents"] == 5


def test_only_active_flag_is_accepted(client):
    target = agent_id(client, "VoyageAI")
    assert client.patch(f"{API}/agents/{target}", json={"name": "Renamed"}).status_code == 422
    assert client.patch(f"{API}/agents/{target}", json={"isActive": False, "avgPrice": 1}).status_code == 422
    assert client.patch(f"{API}/agents/999", json={"isActive": False}).status_code == 404


def test_admin_key_enforced_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "admin_api_key", "s3cret")
    target = agent_id(client, "ExploreAI")

    assert client.patch(f"{API}/agents/{target}", json={"isActive": False}).status_code == 403
    wrong = client.patch(f"{API}/agents/{target}", json={"isActive": False}, headers={"X-API-Key": "nope"})
    assert wrong.status_code == 403
    ok = client.patch(f"{API}/agents/{target}", json={"isActive": False}, headers={"X-API-Key": "s3cret"})
    assert ok.status_code == 200


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

def test_analytics_defaults_without_activity(client):
    analytics = client.get(f"{API}/analytics").json()
    assert analytics == {
        "avgPrice": 2845.0,
        "mostPopularDestination": "Bali",
        "fastestConfirmation": "2.3 min",
        "totalTrips": 0,
        "totalDeals": 0,
        "activeAgents": 5,
    }


def test_analytics_after_trips(client, trip_form):
    client.post(f"{API}/trips", json=trip_form)
    client.post(f"{API}/trips", json=dict(trip_form, destination="Tokyo"))
    client.post(f"{API}/trips", json=dict(trip_form, destination="Tokyo", budget="luxury"))

    analytics = client.get(f"{API}/analytics").json()
    assert analytics["totalTrips"] == 3
    assert analytics["totalDeals"] == 9
    assert analytics["mostPopularDestination"] == "Tokyo"
    assert analytics["fastestConfirmation"] == "1 min"
    assert analytics["avgPrice"] > 0


def test_analytics_tie_goes_to_later_destination(client, trip_form):
    client.post(f"{API}/trips", json=trip_form)
    client.post(f"{API}/trips", json=dict(trip_form, destination="Tokyo"))
    assert client.get(f"{API}/analytics").json()["mostPopularDestination"] == "Tokyo"


def test_fastest_confirmation_reads_leading_number(db_session):
    logs = AgentLogRepository(db_session)
    logs.create("VoyageAI", 2499, 4, "3 min", "")
    logs.create("WanderBot", 1799, 3, "2.3.4 min", "")
    db_session.commit()
    assert logs.analytics()["fastestConfirmation"] == "2.3.4 min"


# ---------------------------------------------------------------------------
# Log export
# ---------------------------------------------------------------------------

def test_csv_export(client, trip_form):
    client.post(f"{API}/trips", json=trip_form)
    response = client.get(f"{API}/logs/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="travel-agent-logs.csv"' in response.headers["content-disposition"]
    lines = response.text.strip().split("\n")
    assert lines[0] == '"Agent","Price","Hotel Rating","Delivery Time","Timestamp","Notes"'
    assert len(lines) == 6


def test_sheets_push_counts_rows(client, trip_form):
    assert client.post(f"{API}/logs/sheets").json()["rows"] == 0
    client.post(f"{API}/trips", json=trip_form)
    body = client.post(f"{API}/logs/sheets").json()
    assert body == {"message": "Logs sent to Google Sheets successfully", "rows": 5}


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------

def test_health_probes(client):
    health = client.get(f"{API}/health").json()
    assert health["status"] == "healthy"
    assert health["database"] == "available"
    assert health["agents"] == 5
    assert health["email"] == "mock"

    assert client.get(f"{API}/health/ready").json()["ready"] is True
    assert client.get(f"{API}/health/live").json()["alive"] is True


def test_root_and_security_headers(client):
    response = client.get("/")
    assert response.json()["name"] == settings.app_name
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Process-Time" in response.headers
