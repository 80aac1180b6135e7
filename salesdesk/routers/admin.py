import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from salesdesk.auth import SessionContext, require_admin
from salesdesk.config import settings
from salesdesk.db import get_db
from salesdesk.ingestion.schemas import CSV_TEMPLATE_COLUMNS
from salesdesk.services.lead_timers import load_panel
from salesdesk.services.render import render_template

logger = logging.getLogger("salesdesk.routers.admin")

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/lead-timers", response_class=HTMLResponse)
def lead_timers_page(
    request: Request,
    ctx: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> HTMLResponse:
    """Every actor's open leads with their SLA / callback timers."""
    panel = load_panel(db, None)
    return render_template(
        "lead_timers.html",
        {
            "request": request,
            "app_name": settings.app_name,
            "session": ctx,
            "panel": panel,
        },
    )


@router.get("/import", response_class=HTMLResponse)
def csv_import_page(
    request: Request,
    ctx: SessionContext = Depends(require_admin),
) -> HTMLResponse:
    return render_template(
        "csv_import.html",
        {
            "request": request,
            "app_name": settings.app_name,
            "session": ctx,
            "columns": CSV_TEMPLATE_COLUMNS,
        },
    )
