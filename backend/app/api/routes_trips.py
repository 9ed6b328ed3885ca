"""
Trip routes: submit the planning form and browse past trips.
"""

from datetime import datetime
from typing import Any, Dict, List
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.deps import require_db
from app.api.schemas import TripCreate, deal_to_dict, trip_to_dict
from app.core.rate_limiting import limiter, TRIP_LIMIT, DEAL_ACTION_LIMIT
from app.db.repositories import DealRepository, TripRepository
from app.services.trip_planner import TripPlanner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips", tags=["trips"])


@router.post("")
@limiter.limit(TRIP_LIMIT)
def create_trip(request: Request, body: TripCreate, db: Session = Depends(require_db)) -> Dict[str, Any]:
    """
    Plan a trip: persist it, gather agent offers, keep the best three
    and email them when an address was given.
    """
    departure = datetime.strptime(body.departure_date, "%Y-%m-%d")
    returning = datetime.strptime(body.return_date, "%Y-%m-%d")
    if returning <= departure:
        raise HTTPException(status_code=400, detail="Return date must be after departure date")

    try:
        result = TripPlanner(db).plan_trip(body.to_record())
    except SQLAlchemyError as e:
        logger.error(f"Trip planning failed on database error: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=503, detail="Service unavailable: database error")

    return {
        "trip": trip_to_dict(result.trip),
        "deals": [deal_to_dict(d) for d in result.deals],
        "emailSent": result.email_sent,
        "usedFallback": result.used_fallback,
    }


@router.get("")
@limiter.limit(DEAL_ACTION_LIMIT)
def list_trips(request: Request, db: Session = Depends(require_db)) -> List[Dict[str, Any]]:
    """All trips, newest first."""
    return [trip_to_dict(t) for t in TripRepository(db).get_all()]


@router.get("/{trip_id}")
@limiter.limit(DEAL_ACTION_LIMIT)
def get_trip(request: Request, trip_id: int, db: Session = Depends(require_db)) -> Dict[str, Any]:
    trip = TripRepository(db).get(trip_id)
    if trip is None:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip_to_dict(trip)


@router.get("/{trip_id}/deals")
@limiter.limit(DEAL_ACTION_LIMIT)
def get_trip_deals(request: Request, trip_id: int, db: Session = Depends(require_db)) -> List[Dict[str, Any]]:
    if TripRepository(db).get(trip_id) is None:
        raise HTTPException(status_code=404, detail="Trip not found")
    return [deal_to_dict(d) for d in DealRepository(db).get_by_trip(trip_id)]
