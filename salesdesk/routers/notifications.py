import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from salesdesk.auth import SessionContext, get_session_context, require_admin
from salesdesk.db import get_db
from salesdesk.routers.deps import get_refresher
from salesdesk.services.lead_timers import load_panel
from salesdesk.services.refreshers import LEAD_TIMERS

logger = logging.getLogger("salesdesk.routers.notifications")

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/lead-timers")
def lead_timers(
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """The notification bell: the actor's open leads with their timers."""
    return load_panel(db, ctx.actor.id).as_dict()


@router.get("/lead-timers/all")
def all_lead_timers(
    request: Request,
    ctx: SessionContext = Depends(require_admin),
) -> Dict[str, Any]:
    """Latest background snapshot across all actors."""
    refresher = get_refresher(request, LEAD_TIMERS)
    snapshot = refresher.snapshot if refresher else None
    return {
        "refresher": refresher.status() if refresher else None,
        "panel": snapshot.as_dict() if snapshot else None,
    }
