from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Dict, Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from salesdesk.config import settings
from salesdesk.models.enums import Role
from salesdesk.models.user_role import UserRole
from salesdesk.timeutil import as_utc, utcnow

if TYPE_CHECKING:
    from salesdesk.auth import Actor

logger = logging.getLogger("salesdesk.services.roles")


@dataclass(frozen=True)
class ResolvedRole:
    user_id: str
    email: str
    role: str
    created_at: datetime
    id: Optional[int] = None
    # False when the role came from the allowlist fallback and was never stored
    persisted: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    @property
    def is_salesman(self) -> bool:
        return self.role == Role.SALESMAN.value

    @classmethod
    def from_row(cls, row: UserRole) -> "ResolvedRole":
        return cls(
            id=row.id,
            user_id=row.user_id,
            email=row.email,
            role=row.role,
            created_at=as_utc(row.created_at),
        )


def allowlist_role(email: Optional[str], admin_emails: Optional[Iterable[str]] = None) -> str:
    if admin_emails is None:
        admin_emails = settings.admin_emails
    allowed = {e.strip().lower() for e in admin_emails}
    if email and email.strip().lower() in allowed:
        return Role.ADMIN.value
    return Role.SALESMAN.value


def fallback_role(actor: "Actor", admin_emails: Optional[Iterable[str]] = None) -> ResolvedRole:
    return ResolvedRole(
        user_id=actor.id,
        email=actor.email,
        role=allowlist_role(actor.email, admin_emails),
        created_at=utcnow(),
        persisted=False,
    )


def _find_role_row(db: Session, user_id: str) -> Optional[UserRole]:
    return db.query(UserRole).filter(UserRole.user_id == user_id).one_or_none()


def resolve_role(
    db: Optional[Session],
    actor: "Actor",
    admin_emails: Optional[Iterable[str]] = None,
) -> ResolvedRole:
    """
    Look up the actor's role, creating it on first access.

    - Existing row wins.
    - Missing row: insert admin/salesman from the allowlist.
    - Lost insert race (unique violation): re-read the winner's row.
    - No database, or any database failure: allowlist role, not persisted.

    Never raises.
    """
    if db is None:
        logger.error("No database session; using allowlist role for %s", actor.email)
        return fallback_role(actor, admin_emails)

    try:
        row = _find_role_row(db, actor.id)
        if row is not None:
            logger.debug("Found existing role %s for %s", row.role, actor.email)
            return ResolvedRole.from_row(row)

        role = allowlist_role(actor.email, admin_emails)
        logger.info("Creating role %s for user %s", role, actor.email)
        row = UserRole(user_id=actor.id, email=actor.email or "", role=role)
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info("Duplicate role detected for %s, fetching existing", actor.email)
            row = _find_role_row(db, actor.id)
            if row is None:
                raise
            return ResolvedRole.from_row(row)

        db.refresh(row)
        return ResolvedRole.from_row(row)

    except Exception:  # noqa: BLE001
        logger.exception("Error resolving role for %s; using allowlist fallback", actor.email)
        try:
            db.rollback()
        except Exception:  # noqa: BLE001
            logger.debug("Rollback after role failure also failed", exc_info=True)
        return fallback_role(actor, admin_emails)


class RoleCache:
    """
    Per-process cache of resolved roles, keyed by user id.

    Only persisted roles are cached so a fallback is retried next time.
    """

    def __init__(self) -> None:
        self._roles: Dict[str, ResolvedRole] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Optional[ResolvedRole]:
        with self._lock:
            return self._roles.get(user_id)

    def get_or_resolve(self, db: Optional[Session], actor: "Actor") -> ResolvedRole:
        cached = self.get(actor.id)
        if cached is not None:
            return cached
        resolved = resolve_role(db, actor)
        if resolved.persisted:
            with self._lock:
                self._roles[actor.id] = resolved
        return resolved

    def invalidate(self, user_id: str) -> bool:
        with self._lock:
            return self._roles.pop(user_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._roles.clear()


role_cache = RoleCache()
