"""
Shared route dependencies.
"""

from typing import Optional
import hmac
import logging

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.database import get_db

logger = logging.getLogger(__name__)


def require_db(db: Optional[Session] = Depends(get_db)) -> Session:
    """Session for data routes; 503 while the database is unavailable."""
    if db is None:
        raise HTTPException(status_code=503, detail="Service unavailable: database not connected")
    return db


def require_admin_key(request: Request) -> None:
    """Check X-API-Key when ADMIN_API_KEY is set. An empty key leaves admin routes open."""
    expected = settings.admin_api_key
    if not expected:
        return
    api_key = request.headers.get("X-API-Key", "")
    if not hmac.compare_digest(api_key.encode(), expected.encode()):
        logger.warning(f"Rejected admin request to {request.url.path}")
        raise HTTPException(status_code=403, detail="Invalid or missing API key")
