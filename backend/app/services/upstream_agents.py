"""
Upstream agent API client (OmniDimension).
When credentials are configured, offers come from the external agent network
instead of the local persona generator. Any failure raises DealGenerationError
so the planner can fall back to canned deals.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging

import httpx

from app.core.config import settings
from app.services.deal_generator import DealGenerationError, PERSONAS_BY_NAME, destination_profile
from app.services.deal_scoring import DealCandidate

logger = logging.getLogger(__name__)


def _first(item: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = item.get(key)
        if value not in (None, ""):
            return value
    return default


def _as_list(value: Any) -> List[str]:
    """Inclusions as a list of strings; a bare string is one inclusion."""
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v not in (None, "")]
    return [str(value)]


class UpstreamAgentsClient:
    """Thin synchronous client for the agent network's deal search endpoint."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.endpoint = endpoint if endpoint is not None else settings.omnidimension_endpoint
        self.api_key = api_key if api_key is not None else settings.omnidimension_api_key
        self.timeout = timeout or settings.omnidimension_timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.api_key)

    def fetch_candidates(self, trip: Any, max_results: Optional[int] = None) -> List[DealCandidate]:
        """POST the trip to the agent network and map the returned offers."""
        if not self.is_configured:
            raise DealGenerationError("Upstream agent API credentials not configured")

        max_results = max_results or settings.deal_candidates
        payload = {
            "destination": trip.destination,
            "duration": trip.duration,
            "travelType": trip.travel_type,
            "budget": trip.budget,
            "departureDate": trip.departure_date,
            "returnDate": trip.return_date,
            "requestType": "travel_deals",
            "maxResults": max_results,
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.endpoint, json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Upstream agent API error: {e}")
            raise DealGenerationError(f"Upstream agent API error: {e}") from e
        except ValueError as e:
            raise DealGenerationError(f"Upstream agent API returned invalid JSON: {e}") from e

        items: List[Any] = []
        if isinstance(data, dict):
            items = data.get("deals") or data.get("results") or []
        candidates = [self._to_candidate(trip, item) for item in items[:max_results] if isinstance(item, dict)]
        if not candidates:
            raise DealGenerationError("Upstream agent API returned no deals")
        logger.info(f"Upstream agent API returned {len(candidates)} deals for {trip.destination}")
        return candidates

    def _to_candidate(self, trip: Any, item: Dict[str, Any]) -> DealCandidate:
        agent = str(_first(item, "agentName", "agent", default="AI Travel Agent"))
        persona = PERSONAS_BY_NAME.get(agent)
        profile = destination_profile(trip.destination)
        try:
            price = float(_first(item, "price", "totalCost", default=2899.00))
            original_price = float(_first(item, "originalPrice", "listPrice", default=3499.00))
            rating = int(_first(item, "hotelStars", "rating", default=4))
        except (TypeError, ValueError) as e:
            raise DealGenerationError(f"Malformed upstream deal from {agent}: {e}") from e

        return DealCandidate(
            agent=agent,
            destination=trip.destination.strip(),
            price=price,
            original_price=original_price,
            hotel_rating=max(1, min(5, rating)),
            confirmation_time=str(_first(item, "responseTime", "confirmationTime", default="3 min")),
            inclusions=_as_list(_first(item, "inclusions", "amenities", default=["Hotel", "Breakfast", "Tours"])),
            image_url=str(_first(item, "imageUrl", default=profile["image_url"])),
            description=str(_first(item, "description", "summary",
                                   default=f"Premium travel package to {trip.destination}")),
            specialty=persona.specialty if persona else "",
            personality=persona.personality if persona else "",
        )
