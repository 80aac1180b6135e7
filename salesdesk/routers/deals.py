import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from salesdesk.auth import SessionContext, get_session_context
from salesdesk.db import get_db
from salesdesk.models.enums import ActionType, DealStatus, PaymentType, TargetType
from salesdesk.routers.deps import user_agent
from salesdesk.schemas.deals import DealIn, DealOut
from salesdesk.schemas.leads import DeleteResult
from salesdesk.services import deals as deal_service
from salesdesk.services.activity_logger import log_activity
from salesdesk.services.revenue import summarize_deals

logger = logging.getLogger("salesdesk.routers.deals")

router = APIRouter(prefix="/api/deals", tags=["deals"])


@router.get("", response_model=List[DealOut])
def list_deals(
    search: Optional[str] = Query(default=None),
    status_filter: Optional[DealStatus] = Query(default=None, alias="status"),
    payment_type: Optional[PaymentType] = Query(default=None),
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> List[DealOut]:
    deals = deal_service.list_deals(
        db,
        ctx.actor.id,
        search=search,
        status=status_filter.value if status_filter else None,
        payment_type=payment_type.value if payment_type else None,
    )
    return [DealOut.model_validate(d) for d in deals]


@router.get("/summary")
def deals_summary(
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> dict:
    """Totals strip above the actor's deal list."""
    return summarize_deals(deal_service.list_deals(db, ctx.actor.id)).as_dict()


@router.get("/{deal_id}", response_model=DealOut)
def read_deal(
    deal_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DealOut:
    deal = deal_service.get_deal(db, deal_id)
    deal_service.ensure_can_modify(deal, ctx)
    return DealOut.model_validate(deal)


@router.post("", response_model=DealOut, status_code=status.HTTP_201_CREATED)
def create_deal(
    payload: DealIn,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DealOut:
    deal = deal_service.create_deal(db, ctx, payload.model_dump())
    log_activity(
        db,
        user_id=ctx.actor.id,
        user_email=ctx.actor.email,
        action_type=ActionType.CREATE,
        action_details=f"Closed deal {deal.title}",
        target_type=TargetType.DEAL,
        target_id=deal.id,
        target_name=deal.company,
        metadata={"deal_value": deal.deal_value, "payment_type": deal.payment_type},
        user_agent=user_agent(request),
    )
    return DealOut.model_validate(deal)


@router.put("/{deal_id}", response_model=DealOut)
def update_deal(
    deal_id: int,
    payload: DealIn,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DealOut:
    deal = deal_service.get_deal(db, deal_id)
    deal = deal_service.update_deal(db, deal, ctx, payload.model_dump())
    log_activity(
        db,
        user_id=ctx.actor.id,
        user_email=ctx.actor.email,
        action_type=ActionType.EDIT,
        action_details=f"Updated deal {deal.title}",
        target_type=TargetType.DEAL,
        target_id=deal.id,
        target_name=deal.company,
        user_agent=user_agent(request),
    )
    return DealOut.model_validate(deal)


@router.delete("/{deal_id}", response_model=DeleteResult)
def delete_deal(
    deal_id: int,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
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
        action_details=f"Deleted deal {title}",
        target_type=TargetType.DEAL,
        target_id=deal_id,
        target_name=company,
        user_agent=user_agent(request),
    )
    return DeleteResult(deleted=1)
