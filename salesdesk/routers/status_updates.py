import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from salesdesk.auth import SessionContext, get_session_context
from salesdesk.db import get_db
from salesdesk.models.enums import StatusUpdateTarget
from salesdesk.schemas.leads import DeleteResult
from salesdesk.schemas.records import StatusUpdateIn, StatusUpdateOut
from salesdesk.services import status_updates as update_service

logger = logging.getLogger("salesdesk.routers.status_updates")

router = APIRouter(prefix="/api/status-updates", tags=["status-updates"])


@router.get("/{target_type}/{target_id}", response_model=List[StatusUpdateOut])
def list_updates(
    target_type: StatusUpdateTarget,
    target_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> List[StatusUpdateOut]:
    updates = update_service.list_updates(db, target_type.value, target_id)
    return [StatusUpdateOut.model_validate(u) for u in updates]


@router.post("", response_model=StatusUpdateOut, status_code=status.HTTP_201_CREATED)
def add_update(
    payload: StatusUpdateIn,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> StatusUpdateOut:
    update = update_service.add_update(
        db,
        ctx.actor.id,
        payload.target_type,
        payload.target_id,
        payload.comment,
    )
    return StatusUpdateOut.model_validate(update)


@router.delete("/{update_id}", response_model=DeleteResult)
def delete_update(
    update_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DeleteResult:
    update_service.delete_update(db, update_id, ctx.actor.id)
    return DeleteResult(deleted=1)
