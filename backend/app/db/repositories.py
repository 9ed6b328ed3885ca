"""
Repository pattern for data access.
One repository per table; records are inserted once and read thereafter,
except Agent.is_active which the admin toggle flips.
"""

from collections import Counter
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging
import re

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.models import Agent, AgentLog, ChatLog, Deal, Trip
from app.services.deal_generator import AGENT_PERSONAS, BUDGET_BASE_PRICES, DEFAULT_BUDGET
from app.services.deal_scoring import DealCandidate

logger = logging.getLogger(__name__)

# Analytics defaults when nothing has been logged yet
DEFAULT_AVG_PRICE = 2845.0
DEFAULT_POPULAR_DESTINATION = "Bali"
DEFAULT_FASTEST_CONFIRMATION = "2.3 min"

_NUMBER_PREFIX = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def _minutes_value(text: str) -> float:
    """
    Numeric part of a delivery time ("2.3 min" -> 2.3).
    Non-digits are dropped first and the longest leading number is read,
    so "v2.3.4" gives 2.3. inf when there is no number at all.
    """
    digits = re.sub(r"[^\d.]", "", text or "")
    match = _NUMBER_PREFIX.match(digits)
    return float(match.group()) if match else float("inf")


class TripRepository:
    """Trips submitted through the planning form."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, data: Dict[str, Any]) -> Trip:
        trip = Trip(**data)
        self.db.add(trip)
        self.db.commit()
        self.db.refresh(trip)
        return trip

    def get(self, trip_id: int) -> Optional[Trip]:
        return self.db.query(Trip).filter(Trip.id == trip_id).first()

    def get_all(self) -> List[Trip]:
        return self.db.query(Trip).order_by(Trip.created_at.desc(), Trip.id.desc()).all()

    def count(self) -> int:
        return self.db.query(Trip).count()


class DealRepository:
    """Deals selected for trips."""

    def __init__(self, db: Session):
        self.db = db

    def create_from_candidate(self, candidate: DealCandidate, trip_id: Optional[int]) -> Deal:
        deal = Deal(
            trip_id=trip_id,
            agent=candidate.agent,
            destination=candidate.destination,
            price=Decimal(str(round(candidate.price, 2))),
            original_price=Decimal(str(round(candidate.original_price, 2))),
            hotel_rating=candidate.hotel_rating,
            confirmation_time=candidate.confirmation_time,
            inclusions=list(candidate.inclusions),
            image_url=candidate.image_url,
            description=candidate.description,
            flight_details=candidate.flight_details,
            accommodation_details=candidate.accommodation_details,
            inclusions_breakdown=candidate.inclusions_breakdown,
            location_info=candidate.location_info,
            booking_terms=candidate.booking_terms,
        )
        self.db.add(deal)
        self.db.flush()
        return deal

    def get(self, deal_id: int) -> Optional[Deal]:
        return self.db.query(Deal).filter(Deal.id == deal_id).first()

    def get_by_trip(self, trip_id: int) -> List[Deal]:
        return self.db.query(Deal).filter(Deal.trip_id == trip_id).order_by(Deal.id).all()

    def get_all(self) -> List[Deal]:
        return self.db.query(Deal).order_by(Deal.id).all()


class AgentLogRepository:
    """Per-agent offer log shown in the activity panel and CSV export."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, agent: str, price: float, hotel_rating: int, delivery_time: str, notes: str) -> AgentLog:
        log = AgentLog(
            agent=agent,
            price=Decimal(str(round(price, 2))),
            hotel_rating=hotel_rating,
            delivery_time=delivery_time,
            notes=notes,
        )
        self.db.add(log)
        self.db.flush()
        return log

    def get_all(self) -> List[AgentLog]:
        """Newest first."""
        return self.db.query(AgentLog).order_by(AgentLog.created_at.desc(), AgentLog.id.desc()).all()

    def analytics(self) -> Dict[str, Any]:
        """Summary figures for the admin dashboard."""
        logs = self.get_all()

        if logs:
            avg_price = sum(float(log.price) for log in logs) / len(logs)
            fastest = min(logs, key=lambda log: _minutes_value(log.delivery_time)).delivery_time
        else:
            avg_price = DEFAULT_AVG_PRICE
            fastest = DEFAULT_FASTEST_CONFIRMATION

        # Ties go to the destination that first appeared latest
        destinations = Counter(d for (d,) in self.db.query(Deal.destination).order_by(Deal.id).all())
        most_popular, best = DEFAULT_POPULAR_DESTINATION, 0
        for destination, count in destinations.items():
            if count >= best:
                most_popular, best = destination, count

        return {
            "avgPrice": round(avg_price, 2),
            "mostPopularDestination": most_popular,
            "fastestConfirmation": fastest,
            "totalTrips": self.db.query(func.count(Trip.id)).scalar() or 0,
            "totalDeals": self.db.query(func.count(Deal.id)).scalar() or 0,
            "activeAgents": self.db.query(func.count(Agent.id)).filter(Agent.is_active.is_(True)).scalar() or 0,
        }


class AgentRepository:
    """Agent persona registry."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> List[Agent]:
        return self.db.query(Agent).order_by(Agent.id).all()

    def get(self, agent_id: int) -> Optional[Agent]:
        return self.db.query(Agent).filter(Agent.id == agent_id).first()

    def set_active(self, agent_id: int, is_active: bool) -> Optional[Agent]:
        agent = self.get(agent_id)
        if agent is None:
            return None
        agent.is_active = is_active
        self.db.commit()
        self.db.refresh(agent)
        logger.info(f"Agent {agent.name} is now {'active' if is_active else 'inactive'}")
        return agent

    def seed_defaults(self) -> int:
        """Insert the default personas when the table is empty. Returns rows inserted."""
        if self.db.query(Agent).count() > 0:
            return 0
        # Average price quoted for a mid-range week before trip multipliers
        reference = BUDGET_BASE_PRICES[DEFAULT_BUDGET]
        for persona in AGENT_PERSONAS:
            self.db.add(Agent(
                name=persona.name,
                is_active=True,
                avg_price=Decimal(str(round(reference * persona.price_multiplier, 2))),
                avg_confirmation_time=persona.confirmation_time,
            ))
        self.db.commit()
        return len(AGENT_PERSONAS)


class ChatLogRepository:
    """Agent conversation transcripts."""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        trip_id: Optional[int],
        agent: str,
        message_type: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ChatLog:
        entry = ChatLog(
            trip_id=trip_id,
            agent=agent,
            message_type=message_type,
            message=message,
            message_metadata=metadata,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_by_trip(self, trip_id: int) -> List[ChatLog]:
        """Oldest first."""
        return (
            self.db.query(ChatLog)
            .filter(ChatLog.trip_id == trip_id)
            .order_by(ChatLog.timestamp.asc(), ChatLog.id.asc())
            .all()
        )

    def get_by_agent(self, agent: str) -> List[ChatLog]:
        """Newest first."""
        return (
            self.db.query(ChatLog)
            .filter(ChatLog.agent == agent)
            .order_by(ChatLog.timestamp.desc(), ChatLog.id.desc())
            .all()
        )
