from __future__ import annotations

import logging
from typing import List

from sqlalchemy.orm import Session

from salesdesk.models import Demo, Project, StatusUpdate
from salesdesk.models.enums import StatusUpdateTarget
from salesdesk.services.errors import PermissionDeniedError, RecordNotFoundError

logger = logging.getLogger("salesdesk.services.status_updates")

_TARGET_MODELS = {
    StatusUpdateTarget.DEMO.value: Demo,
    StatusUpdateTarget.PROJECT.value: Project,
}


def list_updates(db: Session, target_type: str, target_id: int) -> List[StatusUpdate]:
    return (
        db.query(StatusUpdate)
        .filter(
            StatusUpdate.target_type == target_type,
            StatusUpdate.target_id == target_id,
        )
        .order_by(StatusUpdate.created_at.desc(), StatusUpdate.id.desc())
        .all()
    )


def add_update(
    db: Session,
    user_id: str,
    target_type: str,
    target_id: int,
    comment: str,
) -> StatusUpdate:
    model = _TARGET_MODELS[target_type]
    if db.get(model, target_id) is None:
        raise RecordNotFoundError(target_type.capitalize(), target_id)

    update = StatusUpdate(
        user_id=user_id,
        target_type=target_type,
        target_id=target_id,
        comment=comment.strip(),
    )
    db.add(update)
    db.commit()
    db.refresh(update)
    logger.info("Added status update id=%s on %s %s", update.id, target_type, target_id)
    return update


def delete_update(db: Session, update_id: int, user_id: str) -> None:
    """Status updates are append-only; only the author may remove one."""
    update = db.get(StatusUpdate, update_id)
    if update is None:
        raise RecordNotFoundError("Status update", update_id)
    if update.user_id != user_id:
        raise PermissionDeniedError("You can only delete your own updates.")
    db.delete(update)
    db.commit()
    logger.info("Deleted status update id=%s", update_id)
