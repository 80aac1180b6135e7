import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from salesdesk.auth import SessionContext, get_session_context
from salesdesk.db import get_db
from salesdesk.models import Demo
from salesdesk.models.enums import ActionType, DemoStatus, TargetType
from salesdesk.routers.deps import user_agent
from salesdesk.schemas.leads import DeleteResult
from salesdesk.schemas.records import DemoIn, DemoOut, DemoStatusIn
from salesdesk.services import demos as demo_service
from salesdesk.services.activity_logger import log_activity

logger = logging.getLogger("salesdesk.routers.demos")

router = APIRouter(prefix="/api/demos", tags=["demos"])


def _log(
    request: Request,
    ctx: SessionContext,
    db: Session,
    action: ActionType,
    details: str,
    demo: Demo,
) -> None:
    log_activity(
        db,
        user_id=ctx.actor.id,
        user_email=ctx.actor.email,
        action_type=action,
        action_details=details,
        target_type=TargetType.DEMO,
        target_id=demo.id,
        target_name=demo.title,
        user_agent=user_agent(request),
    )


@router.get("", response_model=List[DemoOut])
def list_demos(
    search: Optional[str] = Query(default=None),
    status_filter: Optional[DemoStatus] = Query(default=None, alias="status"),
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> List[DemoOut]:
    demos = demo_service.list_demos(
        db,
        search=search,
        status=status_filter.value if status_filter else None,
    )
    return [DemoOut.model_validate(d) for d in demos]


@router.get("/{demo_id}", response_model=DemoOut)
def read_demo(
    demo_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DemoOut:
    return DemoOut.model_validate(demo_service.get_demo(db, demo_id))


@router.post("", response_model=DemoOut, status_code=status.HTTP_201_CREATED)
def create_demo(
    payload: DemoIn,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DemoOut:
    demo = demo_service.create_demo(db, ctx.actor.id, payload.model_dump())
    _log(request, ctx, db, ActionType.CREATE, f"Created demo {demo.title}", demo)
    return DemoOut.model_validate(demo)


@router.put("/{demo_id}", response_model=DemoOut)
def update_demo(
    demo_id: int,
    payload: DemoIn,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DemoOut:
    demo = demo_service.get_demo(db, demo_id)
    demo = demo_service.update_demo(db, demo, payload.model_dump())
    _log(request, ctx, db, ActionType.EDIT, f"Updated demo {demo.title}", demo)
    return DemoOut.model_validate(demo)


@router.patch("/{demo_id}", response_model=DemoOut)
def set_demo_status(
    demo_id: int,
    payload: DemoStatusIn,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DemoOut:
    demo = demo_service.get_demo(db, demo_id)
    demo = demo_service.set_demo_status(db, demo, payload.status)
    _log(request, ctx, db, ActionType.EDIT, f"Set demo status to {demo.status}", demo)
    return DemoOut.model_validate(demo)


@router.post("/{demo_id}/advance", response_model=DemoOut)
def advance_demo(
    demo_id: int,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DemoOut:
    """pending -> in-progress -> completed; completed demos stay put."""
    demo = demo_service.get_demo(db, demo_id)
    before = demo.status
    demo = demo_service.advance_demo(db, demo)
    if demo.status != before:
        _log(request, ctx, db, ActionType.EDIT, f"Advanced demo from {before} to {demo.status}", demo)
    return DemoOut.model_validate(demo)


@router.delete("/{demo_id}", response_model=DeleteResult)
def delete_demo(
    demo_id: int,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DeleteResult:
    demo = demo_service.get_demo(db, demo_id)
    log_activity(
        db,
        user_id=ctx.actor.id,
        user_email=ctx.actor.email,
        action_type=ActionType.DELETE,
        action_details=f"Deleted demo {demo.title}",
        target_type=TargetType.DEMO,
        target_id=demo_id,
        target_name=demo.title,
        user_agent=user_agent(request),
    )
    demo_service.delete_demo(db, demo)
    return DeleteResult(deleted=1)
