import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from salesdesk.auth import SessionContext, get_session_context
from salesdesk.db import get_db
from salesdesk.routers.deps import user_agent
from salesdesk.schemas.activity import ActivityAck, ActivityIn
from salesdesk.services.activity_logger import log_activity

logger = logging.getLogger("salesdesk.routers.activity")

router = APIRouter(prefix="/api/activity", tags=["activity"])


@router.post("", response_model=ActivityAck, status_code=status.HTTP_202_ACCEPTED)
def record_activity(
    payload: ActivityIn,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> ActivityAck:
    """Browser-side clicks, views and navigation. Always accepted."""
    logged = log_activity(
        db,
        user_id=ctx.actor.id,
        user_email=ctx.actor.email,
        action_type=payload.action_type,
        action_details=payload.action_details,
        target_type=payload.target_type,
        target_id=payload.target_id,
        target_name=payload.target_name,
        metadata=payload.metadata,
        user_agent=user_agent(request),
    )
    return ActivityAck(logged=logged)
