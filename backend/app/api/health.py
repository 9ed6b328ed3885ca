"""
Health check routes.
Probes for load-balancer readiness and liveness.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from sqlalchemy import text
from datetime import datetime
import time
import logging

from app.db.database import get_db
from app.db.repositories import AgentRepository, TripRepository
from app.core.config import settings
from app.core.rate_limiting import limiter, HEALTH_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

_STARTUP_TIME = time.time()


@router.get("")
@limiter.limit(HEALTH_LIMIT)
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Database connectivity, record counts, email mode and uptime.
    Safe when db is None (degraded).
    """
    health = {
        "status": "healthy",
        "database": "unavailable",
        "trips": 0,
        "agents": 0,
        "email": "mock" if not (settings.gmail_user and settings.gmail_app_password) else "smtp",
        "uptime_seconds": int(time.time() - _STARTUP_TIME),
        "timestamp": datetime.utcnow().isoformat(),
    }

    if db is None:
        health["status"] = "degraded"
        return health

    try:
        health["trips"] = TripRepository(db).count()
        health["agents"] = len(AgentRepository(db).get_all())
        health["database"] = "available"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health["status"] = "degraded"

    return health


@router.get("/ready")
@limiter.limit(HEALTH_LIMIT)
def readiness_check(request: Request, db: Session = Depends(get_db)):
    """Ready only when the database answers."""
    if db is None:
        return {"ready": False, "error": "database unavailable", "timestamp": datetime.utcnow().isoformat()}
    try:
        db.execute(text("SELECT 1"))
        return {"ready": True, "timestamp": datetime.utcnow().isoformat()}
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return {"ready": False, "error": str(e), "timestamp": datetime.utcnow().isoformat()}


@router.get("/live")
async def liveness_check():
    return {"alive": True, "uptime_seconds": int(time.time() - _STARTUP_TIME), "timestamp": datetime.utcnow().isoformat()}
