"""
Deal routes: listing and the save / email / book actions on a single deal.
Save and book are acknowledgements only; nothing is reserved.
"""

from typing import Any, Dict, List
import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.api.deps import require_db
from app.api.schemas import DealEmailRequest, deal_to_dict
from app.core.rate_limiting import limiter, DEAL_ACTION_LIMIT
from app.db.models import Deal
from app.db.repositories import DealRepository
from app.services.email_service import EmailService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/deals", tags=["deals"])


def _get_deal_or_404(db: Session, deal_id: int) -> Deal:
    deal = DealRepository(db).get(deal_id)
    if deal is None:
        raise HTTPException(status_code=404, detail="Deal not found")
    return deal


@router.get("")
@limiter.limit(DEAL_ACTION_LIMIT)
def list_deals(request: Request, db: Session = Depends(require_db)) -> List[Dict[str, Any]]:
    return [deal_to_dict(d) for d in DealRepository(db).get_all()]


@router.post("/{deal_id}/save")
@limiter.limit(DEAL_ACTION_LIMIT)
def save_deal(request: Request, deal_id: int, db: Session = Depends(require_db)) -> Dict[str, Any]:
    _get_deal_or_404(db, deal_id)
    return {"message": f"Deal {deal_id} saved to favorites"}


@router.post("/{deal_id}/email")
@limiter.limit(DEAL_ACTION_LIMIT)
def email_deal(
    request: Request, deal_id: int, body: DealEmailRequest, db: Session = Depends(require_db)
) -> Dict[str, Any]:
    """Email one deal. Delivery failures are reported in the body, not as an error status."""
    deal = _get_deal_or_404(db, deal_id)
    try:
        sent = EmailService().send_single_deal_email(body.email, deal)
    except Exception as e:
        logger.error(f"Could not email deal {deal_id}: {e}", exc_info=True)
        sent = False
    if not sent:
        return {"message": f"Failed to email deal {deal_id} to {body.email}", "sent": False}
    return {"message": f"Deal {deal_id} emailed to {body.email}", "sent": True}


@router.post("/{deal_id}/book")
@limiter.limit(DEAL_ACTION_LIMIT)
def book_deal(request: Request, deal_id: int, db: Session = Depends(require_db)) -> Dict[str, Any]:
    deal = _get_deal_or_404(db, deal_id)
    booking_id = f"BK{int(time.time() * 1000)}"
    logger.info(f"Booking {booking_id} initiated for deal {deal_id} ({deal.agent}, {deal.destination})")
    return {"message": f"Booking initiated for deal {deal_id}", "bookingId": booking_id}
