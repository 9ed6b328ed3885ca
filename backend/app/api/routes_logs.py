"""
Agent activity log routes (list, CSV export, Google Sheets push)
and agent chat transcript routes.
"""

from typing import Any, Dict, List
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api.deps import require_db
from app.api.schemas import agent_log_to_dict, chat_log_to_dict
from app.core.rate_limiting import limiter, DEAL_ACTION_LIMIT, EXPORT_LIMIT
from app.db.repositories import AgentLogRepository, ChatLogRepository
from app.services.log_export import CSV_FILENAME, agent_logs_to_csv, agent_logs_to_sheet_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/logs", tags=["logs"])
chat_router = APIRouter(prefix="/chat-logs", tags=["chat-logs"])


@router.get("")
@limiter.limit(DEAL_ACTION_LIMIT)
def list_logs(request: Request, db: Session = Depends(require_db)) -> List[Dict[str, Any]]:
    """Agent logs, newest first."""
    return [agent_log_to_dict(log) for log in AgentLogRepository(db).get_all()]


@router.get("/export")
@limiter.limit(EXPORT_LIMIT)
def export_logs(request: Request, db: Session = Depends(require_db)) -> Response:
    logs = AgentLogRepository(db).get_all()
    logger.info(f"Exporting {len(logs)} agent logs as CSV")
    return Response(
        content=agent_logs_to_csv(logs),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{CSV_FILENAME}"'},
    )


@router.post("/sheets")
@limiter.limit(EXPORT_LIMIT)
def push_logs_to_sheets(request: Request, db: Session = Depends(require_db)) -> Dict[str, Any]:
    """Prepare the sheet rows. No Google API call is made."""
    rows = agent_logs_to_sheet_rows(AgentLogRepository(db).get_all())[1:]
    logger.info(f"Mock Google Sheets push of {len(rows)} rows")
    return {"message": "Logs sent to Google Sheets successfully", "rows": len(rows)}


@chat_router.get("/trip/{trip_id}")
@limiter.limit(DEAL_ACTION_LIMIT)
def chat_logs_for_trip(request: Request, trip_id: int, db: Session = Depends(require_db)) -> List[Dict[str, Any]]:
    """Conversation for one trip, oldest first."""
    return [chat_log_to_dict(entry) for entry in ChatLogRepository(db).get_by_trip(trip_id)]


@chat_router.get("/agent/{agent}")
@limiter.limit(DEAL_ACTION_LIMIT)
def chat_logs_for_agent(request: Request, agent: str, db: Session = Depends(require_db)) -> List[Dict[str, Any]]:
    """Messages involving one agent, newest first."""
    return [chat_log_to_dict(entry) for entry in ChatLogRepository(db).get_by_agent(agent)]
