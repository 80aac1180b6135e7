from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from salesdesk.models import Demo
from salesdesk.models.enums import DemoStatus
from salesdesk.services.errors import RecordNotFoundError
from salesdesk.timeutil import utcnow

logger = logging.getLogger("salesdesk.services.demos")

# Quick-advance button on the demo card
NEXT_STATUS = {
    DemoStatus.PENDING.value: DemoStatus.IN_PROGRESS.value,
    DemoStatus.IN_PROGRESS.value: DemoStatus.COMPLETED.value,
}


def next_status(current: str) -> Optional[str]:
    """The status the advance button moves to, or None once completed."""
    return NEXT_STATUS.get(current)


def is_demo_overdue(due_date: Optional[date], status: str, today: Optional[date] = None) -> bool:
    if due_date is None or status == DemoStatus.COMPLETED.value:
        return False
    return due_date < (today or utcnow().date())


def list_demos(
    db: Session,
    search: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Demo]:
    query = db.query(Demo)
    if status:
        query = query.filter(Demo.status == status)
    if search:
        like = f"%{search.lower()}%"
        query = query.filter(
            or_(
                func.lower(Demo.title).like(like),
                func.lower(func.coalesce(Demo.description, "")).like(like),
            )
        )
    return query.order_by(Demo.created_at.desc()).all()


def get_demo(db: Session, demo_id: int) -> Demo:
    demo = db.get(Demo, demo_id)
    if demo is None:
        raise RecordNotFoundError("Demo", demo_id)
    return demo


def create_demo(db: Session, user_id: str, data: Dict[str, Any]) -> Demo:
    demo = Demo(**data, user_id=user_id)
    db.add(demo)
    db.commit()
    db.refresh(demo)
    logger.info("Created demo id=%s title=%s", demo.id, demo.title)
    return demo


def update_demo(db: Session, demo: Demo, data: Dict[str, Any]) -> Demo:
    for key, value in data.items():
        setattr(demo, key, value)
    db.commit()
    db.refresh(demo)
    logger.info("Updated demo id=%s", demo.id)
    return demo


def set_demo_status(db: Session, demo: Demo, status: str) -> Demo:
    old = demo.status
    demo.status = status
    db.commit()
    db.refresh(demo)
    logger.info("Demo id=%s status %s -> %s", demo.id, old, status)
    return demo


def advance_demo(db: Session, demo: Demo) -> Demo:
    """Move a demo one step along pending -> in-progress -> completed."""
    target = next_status(demo.status)
    if target is None:
        return demo
    return set_demo_status(db, demo, target)


def delete_demo(db: Session, demo: Demo) -> None:
    demo_id = demo.id
    db.delete(demo)
    db.commit()
    logger.info("Deleted demo id=%s", demo_id)
