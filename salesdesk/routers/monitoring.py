import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from salesdesk.auth import SessionContext, require_admin
from salesdesk.config import settings
from salesdesk.db import get_db
from salesdesk.routers.deps import get_refresher
from salesdesk.services.monitoring import load_system_stats
from salesdesk.services.refreshers import MONITORING
from salesdesk.services.render import render_template

logger = logging.getLogger("salesdesk.routers.monitoring")

router = APIRouter(tags=["monitoring"])


def _current_stats(request: Request, db: Session):
    """Background snapshot when there is one, otherwise computed now."""
    refresher = get_refresher(request, MONITORING)
    if refresher is not None and refresher.snapshot is not None:
        return refresher.snapshot, refresher.refreshed_at
    return load_system_stats(db), None


@router.get("/api/monitoring")
def monitoring_stats(
    request: Request,
    ctx: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    stats, refreshed_at = _current_stats(request, db)
    return {
        "stats": stats.as_dict(),
        "refreshed_at": refreshed_at.isoformat() if refreshed_at else None,
        "interval_seconds": settings.monitoring_interval_seconds,
    }


@router.get("/admin/monitoring", response_class=HTMLResponse)
def monitoring_page(
    request: Request,
    ctx: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> HTMLResponse:
    stats, refreshed_at = _current_stats(request, db)
    return render_template(
        "monitoring.html",
        {
            "request": request,
            "app_name": settings.app_name,
            "session": ctx,
            "stats": stats,
            "refreshed_at": refreshed_at,
            "refresh_seconds": settings.monitoring_interval_seconds,
        },
    )
