# salesdesk/auth.py

"""
Actor identity and session context for SalesDesk.

Authentication happens upstream (identity provider / gateway). The
authenticated actor reaches this service as two headers:

- `X-User-Id`: stable user id from the identity provider
- `X-User-Email`: the user's email

Routes depend on `get_session_context` to get the actor together with the
resolved role, and on `require_admin` for admin-only views.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from salesdesk.db import get_db
from salesdesk.services.roles import ResolvedRole, role_cache

logger = logging.getLogger("salesdesk.auth")


@dataclass(frozen=True)
class Actor:
    id: str
    email: str

    @property
    def display_name(self) -> str:
        """Local part of the email; used as the default salesman name."""
        return self.email.split("@")[0] if self.email else ""


@dataclass(frozen=True)
class SessionContext:
    actor: Actor
    role: ResolvedRole

    @property
    def is_admin(self) -> bool:
        return self.role.is_admin


def current_actor(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    x_user_email: Optional[str] = Header(default=None, alias="X-User-Email"),
) -> Actor:
    """Dependency: the authenticated actor, or 401."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated.",
        )
    return Actor(id=x_user_id.strip(), email=(x_user_email or "").strip())


def get_session_context(
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
) -> SessionContext:
    role = role_cache.get_or_resolve(db, actor)
    return SessionContext(actor=actor, role=role)


def require_admin(ctx: SessionContext = Depends(get_session_context)) -> SessionContext:
    """Dependency used on admin routes."""
    if not ctx.is_admin:
        logger.warning("Non-admin user %s denied admin route", ctx.actor.email)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators can access this resource.",
        )
    return ctx
