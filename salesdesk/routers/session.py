import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from salesdesk.auth import Actor, SessionContext, current_actor, get_session_context
from salesdesk.services.roles import role_cache

logger = logging.getLogger("salesdesk.routers.session")

router = APIRouter(prefix="/api/session", tags=["session"])


@router.get("")
def read_session(ctx: SessionContext = Depends(get_session_context)) -> Dict[str, Any]:
    """Who is signed in and what they may see."""
    return {
        "user_id": ctx.actor.id,
        "email": ctx.actor.email,
        "display_name": ctx.actor.display_name,
        "role": ctx.role.role,
        "is_admin": ctx.is_admin,
        "role_persisted": ctx.role.persisted,
    }


@router.post("/sign-out")
def sign_out(actor: Actor = Depends(current_actor)) -> Dict[str, bool]:
    cleared = role_cache.invalidate(actor.id)
    logger.info("Sign-out for %s (cached role cleared=%s)", actor.email, cleared)
    return {"signed_out": True}
