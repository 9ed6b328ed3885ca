"""Upstream agent API client against an httpx.MockTransport."""

import json

import httpx
import pytest

from app.services.deal_generator import DealGenerationError
from app.services.upstream_agents import UpstreamAgentsClient

from conftest import make_trip

ENDPOINT = "https://agents.example.test/v1/search"


def client_for(handler):
    return UpstreamAgentsClient(
        endpoint=ENDPOINT, api_key="test-key", timeout=5, transport=httpx.MockTransport(handler)
    )


def test_not_configured_without_credentials():
    client = UpstreamAgentsClient(endpoint="", api_key="")
    assert not client.is_configured
    with pytest.raises(DealGenerationError):
        client.fetch_candidates(make_trip())


def test_request_shape_and_mapping():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"deals": [
            {"agentName": "VoyageAI", "price": "2499.00", "originalPrice": 2999, "hotelStars": 4,
             "responseTime": "3 min", "inclusions": ["Breakfast"], "description": "Heritage stay"},
            {"agent": "Partner Bot", "totalCost": 1500, "listPrice": 2000, "rating": 9,
             "confirmationTime": "6 min", "amenities": ["Pool"], "summary": "Beach hut"},
        ]})

    candidates = client_for(handler).fetch_candidates(make_trip())

    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["requestType"] == "travel_deals"
    assert seen["body"]["maxResults"] == 5
    assert seen["body"]["travelType"] == "honeymoon"

    first, second = candidates
    assert (first.agent, first.price, first.original_price, first.hotel_rating) == ("VoyageAI", 2499.0, 2999.0, 4)
    assert first.specialty == "Cultural Experiences"
    assert (second.agent, second.price, second.original_price) == ("Partner Bot", 1500.0, 2000.0)
    assert second.hotel_rating == 5
    assert second.confirmation_time == "6 min"
    assert second.inclusions == ["Pool"]
    assert second.description == "Beach hut"
    assert second.specialty == ""


def test_results_key_and_defaults():
    def handler(request):
        return httpx.Response(200, json={"results": [{}]})

    (c,) = client_for(handler).fetch_candidates(make_trip())
    assert c.agent == "AI Travel Agent"
    assert (c.price, c.original_price, c.hotel_rating, c.confirmation_time) == (2899.0, 3499.0, 4, "3 min")


def test_results_truncated_to_max():
    def handler(request):
        return httpx.Response(200, json={"deals": [{"agent": f"Bot {i}"} for i in range(8)]})

    assert len(client_for(handler).fetch_candidates(make_trip())) == 5


@pytest.mark.parametrize("response", [
    httpx.Response(500, json={"error": "boom"}),
    httpx.Response(200, json={"deals": []}),
    httpx.Response(200, json=["not", "a", "dict"]),
    httpx.Response(200, content=b"<html>nope</html>"),
    httpx.Response(200, json={"deals": [{"agent": "Bad", "price": "lots"}]}),
])
def test_failures_raise_generation_error(response):
    with pytest.raises(DealGenerationError):
        client_for(lambda request: response).fetch_candidates(make_trip())


def test_transport_error_raises_generation_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DealGenerationError):
        client_for(handler).fetch_candidates(make_trip())


def test_inclusions_string_and_mixed_values():
    def handler(request):
        return httpx.Response(200, json={"deals": [
            {"agent": "A", "inclusions": "Pool, Spa"},
            {"agent": "B", "amenities": ["Wifi", 3, None]},
        ]})

    first, second = client_for(handler).fetch_candidates(make_trip())
    assert first.inclusions == ["Pool, Spa"]
    assert second.inclusions == ["Wifi", "3"]
