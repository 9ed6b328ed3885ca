"""
Request models and response serialisers shared by the API routers.
Responses use camelCase keys; prices are two-decimal strings ("2899.00").
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field, validator

from app.db.models import Agent, AgentLog, ChatLog, Deal, Trip

def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _money(value: Any) -> Optional[str]:
    return f"{float(value):.2f}" if value is not None else None


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class TripCreate(BaseModel):
    destination: str = Field(..., min_length=1, max_length=255)
    duration: str = Field(..., min_length=1, max_length=100)
    travel_type: str = Field(..., alias="travelType", min_length=1, max_length=100)
    budget: str = Field(..., min_length=1, max_length=100)
    departure_date: str = Field(..., alias="departureDate")
    return_date: str = Field(..., alias="returnDate")
    email: Optional[EmailStr] = None

    class Config:
        populate_by_name = True

    @validator("destination", "duration", "travel_type", "budget")
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @validator("departure_date", "return_date")
    def validate_date(cls, v):
        v = v.strip()
        try:
            datetime.strptime(v, "%Y-%m-%d")
        except ValueError:
            raise ValueError("must be a date in YYYY-MM-DD format")
        return v

    @validator("email", pre=True)
    def blank_email_is_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    def to_record(self) -> Dict[str, Any]:
        return self.dict(by_alias=False)


class DealEmailRequest(BaseModel):
    email: EmailStr

    @validator("email", pre=True)
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v


class AgentUpdate(BaseModel):
    """Only the active flag of an agent can change."""

    is_active: bool = Field(..., alias="isActive")

    class Config:
        populate_by_name = True
        extra = "forbid"


# ---------------------------------------------------------------------------
# Serialisers
# ---------------------------------------------------------------------------

def trip_to_dict(trip: Trip) -> Dict[str, Any]:
    return {
        "id": trip.id,
        "destination": trip.destination,
        "duration": trip.duration,
        "travelType": trip.travel_type,
        "budget": trip.budget,
        "departureDate": trip.departure_date,
        "returnDate": trip.return_date,
        "email": trip.email,
        "createdAt": _iso(trip.created_at),
    }


def deal_to_dict(deal: Deal) -> Dict[str, Any]:
    return {
        "id": deal.id,
        "tripId": deal.trip_id,
        "agent": deal.agent,
        "destination": deal.destination,
        "price": _money(deal.price),
        "originalPrice": _money(deal.original_price),
        "hotelRating": deal.hotel_rating,
        "confirmationTime": deal.confirmation_time,
        "inclusions": deal.inclusions or [],
        "imageUrl": deal.image_url,
        "description": deal.description,
        "flightDetails": deal.flight_details,
        "accommodationDetails": deal.accommodation_details,
        "inclusionsBreakdown": deal.inclusions_breakdown,
        "locationInfo": deal.location_info,
        "bookingTerms": deal.booking_terms,
        "createdAt": _iso(deal.created_at),
    }


def agent_log_to_dict(log: AgentLog) -> Dict[str, Any]:
    return {
        "id": log.id,
        "agent": log.agent,
        "price": _money(log.price),
        "hotelRating": log.hotel_rating,
        "deliveryTime": log.delivery_time,
        "notes": log.notes,
        "createdAt": _iso(log.created_at),
    }


def agent_to_dict(agent: Agent) -> Dict[str, Any]:
    return {
        "id": agent.id,
        "name": agent.name,
        "isActive": agent.is_active,
        "avgPrice": _money(agent.avg_price),
        "avgConfirmationTime": agent.avg_confirmation_time,
        "createdAt": _iso(agent.created_at),
    }


def chat_log_to_dict(entry: ChatLog) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "tripId": entry.trip_id,
        "agent": entry.agent,
        "messageType": entry.message_type,
        "message": entry.message,
        "metadata": entry.message_metadata,
        "timestamp": _iso(entry.timestamp),
        "createdAt": _iso(entry.created_at),
    }
