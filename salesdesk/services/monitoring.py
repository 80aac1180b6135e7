from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from salesdesk.models import ActivityLog, Deal, Demo, Lead, Project
from salesdesk.services.lead_timers import build_panel, fetch_timer_leads
from salesdesk.timeutil import utcnow

logger = logging.getLogger("salesdesk.services.monitoring")


@dataclass
class SystemStats:
    total_leads: int = 0
    total_projects: int = 0
    total_demos: int = 0
    total_deals: int = 0
    active_salesmen: int = 0
    overdue_leads: int = 0
    today_activities: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def load_system_stats(db: Session, now: Optional[datetime] = None) -> SystemStats:
    """Counts for the admin monitoring room, across every actor."""
    now = now or utcnow()
    day_start = _start_of_day(now)

    stats = SystemStats(
        total_leads=db.query(func.count(Lead.id)).scalar() or 0,
        total_projects=db.query(func.count(Project.id)).scalar() or 0,
        total_demos=db.query(func.count(Demo.id)).scalar() or 0,
        total_deals=db.query(func.count(Deal.id)).scalar() or 0,
        active_salesmen=(
            db.query(func.count(func.distinct(Deal.salesman_email)))
            .filter(Deal.salesman_email.isnot(None), Deal.salesman_email != "")
            .scalar()
            or 0
        ),
        overdue_leads=len(build_panel(fetch_timer_leads(db), now=now).overdue),
        today_activities=(
            db.query(func.count(ActivityLog.id))
            .filter(
                ActivityLog.timestamp >= day_start,
                ActivityLog.timestamp < day_start + timedelta(days=1),
            )
            .scalar()
            or 0
        ),
    )
    logger.debug("System stats: %s", stats)
    return stats
