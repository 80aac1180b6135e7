import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from salesdesk.models.activity_log import ActivityLog
from salesdesk.models.enums import ActionType, TargetType

log = logging.getLogger("salesdesk.activity")


def log_activity(
    db: Session,
    *,
    user_id: str,
    user_email: str,
    action_type: ActionType,
    action_details: str,
    target_type: TargetType,
    target_id: Optional[Any] = None,
    target_name: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    user_agent: Optional[str] = None,
) -> bool:
    """
    Append an audit record. Fire-and-forget: failures are logged, never raised.

    Commits on the given session, so call it after the caller's own writes.
    """
    log.info(
        "Logging activity %s on %s by %s: %s",
        getattr(action_type, "value", action_type),
        getattr(target_type, "value", target_type),
        user_email,
        action_details,
    )
    try:
        entry = ActivityLog(
            user_id=user_id,
            user_email=user_email or "",
            action_type=getattr(action_type, "value", action_type),
            action_details=action_details,
            target_type=getattr(target_type, "value", target_type),
            target_id=str(target_id) if target_id is not None else None,
            target_name=target_name,
            details=metadata or {},
            user_agent=user_agent,
        )
        db.add(entry)
        db.commit()
        return True
    except Exception as exc:  # noqa: BLE001
        log.error("Failed to log activity: %s", exc)
        try:
            db.rollback()
        except Exception:  # noqa: BLE001
            log.debug("Rollback after activity failure also failed", exc_info=True)
        return False
