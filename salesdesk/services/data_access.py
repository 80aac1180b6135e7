from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.models import Deal, Demo, Lead, Project

logger = logging.getLogger("salesdesk.services.data_access")

T = TypeVar("T")


@dataclass
class QueryResult(Generic[T]):
    """Either data or an error message; callers decide what a failure means."""

    data: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T) -> "QueryResult[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, error: str) -> "QueryResult[T]":
        return cls(error=error)


@dataclass
class ActorData:
    leads: List[Lead] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    demos: List[Demo] = field(default_factory=list)
    deals: List[Deal] = field(default_factory=list)


def load_actor_data(db: Session, user_id: str) -> QueryResult[ActorData]:
    """
    Everything the main views show for one actor.

    Leads and deals are the actor's own; projects and demos are shared.
    """
    try:
        data = ActorData(
            leads=(
                db.query(Lead)
                .filter(Lead.user_id == user_id)
                .order_by(Lead.created_at.desc())
                .all()
            ),
            projects=db.query(Project).order_by(Project.created_at.desc()).all(),
            demos=db.query(Demo).order_by(Demo.created_at.desc()).all(),
            deals=(
                db.query(Deal)
                .filter(Deal.user_id == user_id)
                .order_by(Deal.created_at.desc())
                .all()
            ),
        )
    except SQLAlchemyError as exc:
        logger.exception("Error fetching data for user %s", user_id)
        db.rollback()
        return QueryResult.failure(str(exc))

    logger.debug(
        "Loaded data for %s (leads=%d, projects=%d, demos=%d, deals=%d)",
        user_id,
        len(data.leads),
        len(data.projects),
        len(data.demos),
        len(data.deals),
    )
    return QueryResult.success(data)
