"""
Agent admin routes: registry listing, active toggle, analytics summary.
"""

from typing import Any, Dict, List
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.api.deps import require_admin_key, require_db
from app.api.schemas import AgentUpdate, agent_to_dict
from app.core.rate_limiting import limiter, ADMIN_LIMIT
from app.db.repositories import AgentLogRepository, AgentRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["agents"])


@router.get("/agents")
@limiter.limit(ADMIN_LIMIT)
def list_agents(request: Request, db: Session = Depends(require_db)) -> List[Dict[str, Any]]:
    return [agent_to_dict(a) for a in AgentRepository(db).get_all()]


@router.patch("/agents/{agent_id}", dependencies=[Depends(require_admin_key)])
@limiter.limit(ADMIN_LIMIT)
def update_agent(
    request: Request, agent_id: int, body: AgentUpdate, db: Session = Depends(require_db)
) -> Dict[str, Any]:
    """Enable or disable an agent. Disabled agents stop producing offers."""
    agent = AgentRepository(db).set_active(agent_id, body.is_active)
    if agent is None:
        raise HTTPException(status_code=404, detail="Agent not found")
    return agent_to_dict(agent)


@router.get("/analytics")
@limiter.limit(ADMIN_LIMIT)
def get_analytics(request: Request, db: Session = Depends(require_db)) -> Dict[str, Any]:
    return AgentLogRepository(db).analytics()
