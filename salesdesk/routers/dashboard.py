import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from salesdesk.auth import SessionContext, get_session_context
from salesdesk.db import get_db
from salesdesk.models.enums import DemoStatus, LeadStatus
from salesdesk.services.data_access import load_actor_data
from salesdesk.services.revenue import summarize_deals

logger = logging.getLogger("salesdesk.routers.dashboard")

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("")
def dashboard(
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """
    Personal dashboard: pipeline counts and deal totals for the actor.
    """
    result = load_actor_data(db, ctx.actor.id)
    if not result.ok:
        logger.error("Dashboard data unavailable for %s: %s", ctx.actor.email, result.error)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Data is temporarily unavailable. Please try again.",
        )

    data = result.data
    leads_by_status = {s.value: 0 for s in LeadStatus}
    for lead in data.leads:
        leads_by_status[lead.status] = leads_by_status.get(lead.status, 0) + 1

    return {
        "leads": {"total": len(data.leads), "by_status": leads_by_status},
        "projects": {"total": len(data.projects)},
        "demos": {
            "total": len(data.demos),
            "open": sum(1 for d in data.demos if d.status != DemoStatus.COMPLETED.value),
        },
        "deals": summarize_deals(data.deals).as_dict(),
    }
