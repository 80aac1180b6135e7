from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from salesdesk.models import Deal
from salesdesk.services.errors import PermissionDeniedError, RecordNotFoundError

if TYPE_CHECKING:
    from salesdesk.auth import SessionContext

logger = logging.getLogger("salesdesk.services.deals")


def default_salesman(email: Optional[str]) -> Dict[str, str]:
    """Salesman name/email for a deal created by `email`."""
    email = (email or "").strip()
    return {
        "salesman_name": email.split("@")[0] if email else "",
        "salesman_email": email,
    }


def list_deals(
    db: Session,
    user_id: Optional[str] = None,
    *,
    search: Optional[str] = None,
    status: Optional[str] = None,
    payment_type: Optional[str] = None,
) -> List[Deal]:
    """
    Deals newest first. user_id=None returns every deal (Treasury).
    """
    query = db.query(Deal)
    if user_id is not None:
        query = query.filter(Deal.user_id == user_id)
    if status:
        query = query.filter(Deal.status == status)
    if payment_type:
        query = query.filter(Deal.payment_type == payment_type)
    if search:
        like = f"%{search.lower()}%"
        query = query.filter(
            or_(
                func.lower(Deal.title).like(like),
                func.lower(Deal.company).like(like),
            )
        )
    return query.order_by(Deal.closed_date.desc(), Deal.created_at.desc()).all()


def get_deal(db: Session, deal_id: int) -> Deal:
    deal = db.get(Deal, deal_id)
    if deal is None:
        raise RecordNotFoundError("Deal", deal_id)
    return deal


def ensure_can_modify(deal: Deal, ctx: "SessionContext") -> None:
    """Owners edit their own deals; admins edit any."""
    if ctx.is_admin or deal.user_id == ctx.actor.id:
        return
    logger.warning("User %s may not modify deal id=%s", ctx.actor.email, deal.id)
    raise PermissionDeniedError("You can only modify your own deals.")


def create_deal(db: Session, ctx: "SessionContext", data: Dict[str, Any]) -> Deal:
    defaults = default_salesman(ctx.actor.email)
    data = dict(data)
    for key, value in defaults.items():
        if not (data.get(key) or "").strip():
            data[key] = value

    deal = Deal(**data, user_id=ctx.actor.id)
    db.add(deal)
    db.commit()
    db.refresh(deal)
    logger.info(
        "Created deal id=%s value=%.2f salesman=%s",
        deal.id,
        deal.deal_value,
        deal.salesman_email,
    )
    return deal


def update_deal(db: Session, deal: Deal, ctx: "SessionContext", data: Dict[str, Any]) -> Deal:
    ensure_can_modify(deal, ctx)
    for key, value in data.items():
        # Blank salesman fields keep what the deal already has
        if key in ("salesman_name", "salesman_email") and not value:
            continue
        setattr(deal, key, value)
    db.commit()
    db.refresh(deal)
    logger.info("Updated deal id=%s by %s", deal.id, ctx.actor.email)
    return deal


def delete_deal(db: Session, deal: Deal, ctx: "SessionContext") -> None:
    ensure_can_modify(deal, ctx)
    deal_id = deal.id
    db.delete(deal)
    db.commit()
    logger.info("Deleted deal id=%s by %s", deal_id, ctx.actor.email)
