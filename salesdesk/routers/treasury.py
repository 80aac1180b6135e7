import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from salesdesk.auth import SessionContext, require_admin
from salesdesk.config import settings
from salesdesk.db import get_db
from salesdesk.models.enums import ActionType, TargetType
from salesdesk.routers.deps import user_agent
from salesdesk.schemas.deals import DealIn, DealOut
from salesdesk.schemas.leads import DeleteResult
from salesdesk.services import deals as deal_service
from salesdesk.services.activity_logger import log_activity
from salesdesk.services.render import render_template
from salesdesk.services.revenue import TimeWindow, build_treasury

logger = logging.getLogger("salesdesk.routers.treasury")

router = APIRouter(tags=["treasury"])


@router.get("/api/treasury")
def treasury_report(
    window: TimeWindow = Query(default=TimeWindow.ALL),
    ctx: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    report = build_treasury(deal_service.list_deals(db), window=window)
    return report.as_dict()


@router.get("/admin/treasury", response_class=HTMLResponse)
def treasury_page(
    request: Request,
    window: TimeWindow = Query(default=TimeWindow.ALL),
    ctx: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> HTMLResponse:
    report = build_treasury(deal_service.list_deals(db), window=window)
    logger.info(
        "Rendering treasury (window=%s, salesmen=%d) for %s",
        window.value,
        len(report.salesmen),
        ctx.actor.email,
    )
    return render_template(
        "treasury.html",
        {
            "request": request,
            "app_name": settings.app_name,
            "session": ctx,
            "report": report,
            "windows": [w.value for w in TimeWindow],
        },
    )


@router.put("/api/treasury/deals/{deal_id}", response_model=DealOut)
def admin_update_deal(
    deal_id: int,
    payload: DealIn,
    request: Request,
    ctx: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> DealOut:
    deal = deal_service.get_deal(db, deal_id)
    deal = deal_service.update_deal(db, deal, ctx, payload.model_dump())
    log_activity(
        db,
        user_id=ctx.actor.id,
        user_email=ctx.actor.email,
        action_type=ActionType.EDIT,
        action_details=f"Admin updated deal {deal.title}",
        target_type=TargetType.DEAL,
        target_id=deal.id,
        target_name=deal.company,
        user_agent=user_agent(request),
    )
    return DealOut.model_validate(deal)


@router.delete("/api/treasury/deals/{deal_id}", response_model=DeleteResult)
def admin_delete_deal(
    deal_id: int,
    request: Request,
    ctx: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> DeleteResult:
    deal = deal_service.get_deal(db, deal_id)
    title, company = deal.title, deal.company
    deal_service.delete_deal(db, deal, ctx)
    log_activity(
        db,
        user_id=ctx.actor.id,
        user_email=ctx.actor.email,
        action_type=ActionType.DELETE,
        action_details=f"Admin deleted deal {title}",
        target_type=TargetType.DEAL,
        target_id=deal_id,
        target_name=company,
        user_agent=user_agent(request),
    )
    return DeleteResult(deleted=1)
