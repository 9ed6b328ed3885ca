"""
Trip planning orchestration.
Persist the trip, collect agent offers, keep the best ones, record the agent
activity and conversation, then email the selection to the traveller.
Generation is best-effort: any failure falls back to canned deals.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.monitoring import track_performance
from app.db.models import Deal, Trip
from app.db.repositories import (
    AgentLogRepository,
    AgentRepository,
    ChatLogRepository,
    DealRepository,
    TripRepository,
)
from app.services.deal_generator import (
    AGENT_ICONS,
    PERSONAS_BY_NAME,
    DealGenerationError,
    DealGenerator,
    fallback_candidates,
)
from app.services.deal_scoring import DealCandidate, rank_scored, score_deals
from app.services.email_service import EmailService
from app.services.upstream_agents import UpstreamAgentsClient

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    trip: Trip
    deals: List[Deal] = field(default_factory=list)
    email_sent: bool = False
    used_fallback: bool = False


class TripPlanner:
    """Runs one trip request end to end against a database session."""

    def __init__(
        self,
        db: Session,
        generator: Optional[DealGenerator] = None,
        upstream: Optional[UpstreamAgentsClient] = None,
        email_service: Optional[EmailService] = None,
    ):
        self.db = db
        self.generator = generator or DealGenerator()
        self.upstream = upstream or UpstreamAgentsClient()
        self.email_service = email_service or EmailService()

    @track_performance("plan_trip")
    def plan_trip(self, trip_data: Dict[str, Any]) -> PlanResult:
        trip = TripRepository(self.db).create(trip_data)
        logger.info(f"Planning trip {trip.id} to {trip.destination}", extra={"trip_id": trip.id})

        used_fallback = False
        try:
            candidates = self._collect_candidates(trip)
            scored, ranked = self._rank(candidates)
        except Exception as e:
            logger.warning(f"Deal generation failed for trip {trip.id}, using fallback deals: {e}",
                           extra={"trip_id": trip.id})
            candidates = fallback_candidates(trip)
            scored, ranked = self._rank(candidates)
            used_fallback = True

        deal_repo = DealRepository(self.db)
        selected: Dict[int, Deal] = {}
        for candidate, _ in ranked:
            selected[id(candidate)] = deal_repo.create_from_candidate(candidate, trip.id)

        self._log_agents(scored, selected)
        self._log_conversation(trip, scored, selected)
        self.db.commit()

        deals = [selected[id(c)] for c, _ in ranked]
        for deal in deals:
            self.db.refresh(deal)
        logger.info(f"Trip {trip.id}: selected {', '.join(d.agent for d in deals)}"
                    f"{' (fallback)' if used_fallback else ''}", extra={"trip_id": trip.id})

        email_sent = False
        if trip.email:
            try:
                email_sent = self.email_service.send_deals_email(trip.email, deals, trip)
            except Exception as e:
                logger.error(f"Deal email for trip {trip.id} failed: {e}", exc_info=True)

        return PlanResult(trip=trip, deals=deals, email_sent=email_sent, used_fallback=used_fallback)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _collect_candidates(self, trip: Trip) -> List[DealCandidate]:
        agents = AgentRepository(self.db).get_all()
        if self.upstream.is_configured:
            inactive = {a.name for a in agents if not a.is_active}
            candidates = [c for c in self.upstream.fetch_candidates(trip) if c.agent not in inactive]
            if not candidates:
                raise DealGenerationError("All upstream offers came from inactive agents")
            return candidates
        # An empty registry means nothing was seeded; let every persona answer
        active = [a.name for a in agents if a.is_active] if agents else None
        return self.generator.generate(trip, active_agents=active)

    def _rank(self, candidates: List[DealCandidate]) -> Tuple[List[Tuple[DealCandidate, float]],
                                                           List[Tuple[DealCandidate, float]]]:
        return score_deals(candidates), rank_scored(candidates, settings.top_deals)

    def _log_agents(self, scored: List[Tuple[DealCandidate, float]], selected: Dict[int, Deal]) -> None:
        repo = AgentLogRepository(self.db)
        for candidate, score in scored:
            status = "selected" if id(candidate) in selected else "not selected"
            repo.create(
                agent=candidate.agent,
                price=candidate.price,
                hotel_rating=candidate.hotel_rating,
                delivery_time=candidate.confirmation_time,
                notes=f"Value score {score:.1f}, {status} for {candidate.destination}",
            )

    def _log_conversation(self, trip: Trip, scored: List[Tuple[DealCandidate, float]],
                          selected: Dict[int, Deal]) -> None:
        repo = ChatLogRepository(self.db)
        currency = settings.currency_symbol

        repo.create(
            trip_id=trip.id,
            agent=settings.app_name,
            message_type="user",
            message=(f"Find {trip.travel_type} deals to {trip.destination} for {trip.duration} "
                     f"({trip.departure_date} to {trip.return_date}), {trip.budget} budget."),
            metadata={"step": "request"},
        )

        for candidate, score in scored:
            persona = PERSONAS_BY_NAME.get(candidate.agent)
            icon = AGENT_ICONS.get(candidate.agent, "🤖")
            base_meta = {"specialty": candidate.specialty, "personality": candidate.personality}

            search_line = (persona.search_line if persona and persona.search_line
                           else "Searching partner inventory for {destination}.")
            repo.create(
                trip_id=trip.id,
                agent=candidate.agent,
                message_type="agent",
                message=f"{icon} {search_line.format(destination=candidate.destination)}",
                metadata={"step": "searching", **base_meta},
            )

            offer_line = persona.offer_line if persona and persona.offer_line else "Here is my best offer."
            deal = selected.get(id(candidate))
            offer_meta = {"step": "offer", "valueScore": round(score, 2), **base_meta}
            if deal is not None:
                offer_meta["deal_id"] = deal.id
            repo.create(
                trip_id=trip.id,
                agent=candidate.agent,
                message_type="agent",
                message=(f"{offer_line} {currency}{candidate.price:,.0f} "
                         f"(was {currency}{candidate.original_price:,.0f}), "
                         f"{candidate.hotel_rating}★, confirmed in {candidate.confirmation_time}."),
                metadata=offer_meta,
            )

        winners = [deal.agent for deal in selected.values()]
        repo.create(
            trip_id=trip.id,
            agent=settings.app_name,
            message_type="agent",
            message=f"Compared {len(scored)} offers. Top picks: {', '.join(winners)}.",
            metadata={"step": "summary", "selected": winners},
        )
