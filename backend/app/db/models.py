"""
Database models -- SQLAlchemy ORM definitions.
Trips, generated deals, agent activity logs, agent registry and agent chat transcripts.
Compatible with both PostgreSQL and SQLite.
"""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Trip(Base):
    """A trip request submitted through the planning form."""
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    destination = Column(String(255), nullable=False, index=True)
    duration = Column(String(100), nullable=False)
    travel_type = Column(String(100), nullable=False)
    budget = Column(String(100), nullable=False)
    departure_date = Column(String(50), nullable=False)
    return_date = Column(String(50), nullable=False)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Deal(Base):
    """
    A synthesized travel offer selected for a trip.
    The nested *_details / *_info / booking_terms blobs are free-form JSON.
    """
    __tablename__ = "deals"

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=True, index=True)
    agent = Column(String(255), nullable=False, index=True)
    destination = Column(String(255), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    original_price = Column(Numeric(10, 2), nullable=False)
    hotel_rating = Column(Integer, nullable=False)
    confirmation_time = Column(String(50), nullable=False)
    inclusions = Column(JSON, nullable=False)
    image_url = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    flight_details = Column(JSON, nullable=True)
    accommodation_details = Column(JSON, nullable=True)
    inclusions_breakdown = Column(JSON, nullable=True)
    location_info = Column(JSON, nullable=True)
    booking_terms = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AgentLog(Base):
    """One evaluated offer per agent, shown in the activity log and CSV export."""
    __tablename__ = "agent_logs"

    id = Column(Integer, primary_key=True, index=True)
    agent = Column(String(255), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    hotel_rating = Column(Integer, nullable=False)
    delivery_time = Column(String(50), nullable=False)
    notes = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)


class Agent(Base):
    """Simulated agent persona. Only is_active changes after creation."""
    __tablename__ = "agents"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)
    avg_price = Column(Numeric(10, 2), nullable=True)
    avg_confirmation_time = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ChatLog(Base):
    """Transcript line between the user and an agent persona for a trip."""
    __tablename__ = "chat_logs"

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=True, index=True)
    agent = Column(String(255), nullable=False, index=True)
    message_type = Column(String(50), nullable=False)  # 'user' or 'agent'
    message = Column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    message_metadata = Column("metadata", JSON, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
