"""TripPlanner against an upstream agent API served by httpx.MockTransport."""

import httpx

from app.db.repositories import AgentRepository
from app.services.trip_planner import TripPlanner
from app.services.upstream_agents import UpstreamAgentsClient

ENDPOINT = "https://agents.example.test/v1/search"

TRIP_DATA = {
    "destination": "Bali",
    "duration": "1 week",
    "travel_type": "honeymoon",
    "budget": "mid-range",
    "departure_date": "2026-12-01",
    "return_date": "2026-12-08",
    "email": None,
}

UPSTREAM_DEALS = [
    {"agentName": "TravelBot Pro", "price": 2899, "originalPrice": 3499, "hotelStars": 5, "responseTime": "2 min"},
    {"agentName": "VoyageAI", "price": 2499, "originalPrice": 2999, "hotelStars": 4, "responseTime": "3 min"},
]

FALLBACK_AGENTS = ["TravelBot Pro", "VoyageAI", "WanderBot"]


def planner_for(db, handler):
    upstream = UpstreamAgentsClient(
        endpoint=ENDPOINT, api_key="test-key", timeout=5, transport=httpx.MockTransport(handler)
    )
    return TripPlanner(db, upstream=upstream)


def deals_response(request):
    return httpx.Response(200, json={"deals": UPSTREAM_DEALS})


def disable(db, *names):
    repo = AgentRepository(db)
    for agent in repo.get_all():
        if agent.name in names:
            repo.set_active(agent.id, False)


def test_upstream_offers_are_used(db_session):
    result = planner_for(db_session, deals_response).plan_trip(dict(TRIP_DATA))
    assert not result.used_fallback
    assert [d.agent for d in result.deals] == ["TravelBot Pro", "VoyageAI"]


def test_offers_from_inactive_agents_are_dropped(db_session):
    disable(db_session, "TravelBot Pro")
    result = planner_for(db_session, deals_response).plan_trip(dict(TRIP_DATA))
    assert not result.used_fallback
    assert [d.agent for d in result.deals] == ["VoyageAI"]


def test_only_inactive_offers_fall_back(db_session):
    disable(db_session, "TravelBot Pro", "VoyageAI")
    result = planner_for(db_session, deals_response).plan_trip(dict(TRIP_DATA))
    assert result.used_fallback
    assert [d.agent for d in result.deals] == FALLBACK_AGENTS


def test_upstream_error_falls_back(db_session):
    def handler(request):
        return httpx.Response(500, json={"error": "boom"})

    result = planner_for(db_session, handler).plan_trip(dict(TRIP_DATA))
    assert result.used_fallback
    assert [d.agent for d in result.deals] == FALLBACK_AGENTS
    assert all(d.trip_id == result.trip.id for d in result.deals)
