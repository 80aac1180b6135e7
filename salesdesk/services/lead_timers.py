from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from salesdesk.config import settings
from salesdesk.models.enums import OPEN_LEAD_STATUSES, LeadStatus
from salesdesk.models.lead import Lead
from salesdesk.timeutil import as_utc, utcnow

logger = logging.getLogger("salesdesk.services.lead_timers")

MS_PER_MINUTE = 60_000
MS_PER_HOUR = 3_600_000
MS_PER_DAY = 86_400_000

SEVERITY_CRITICAL = "critical"
SEVERITY_WARNING = "warning"
SEVERITY_NORMAL = "normal"


@dataclass(frozen=True)
class Countdown:
    """A non-negative duration split into whole days, hours and minutes."""

    days: int
    hours: int
    minutes: int

    @classmethod
    def from_ms(cls, ms: int) -> "Countdown":
        ms = abs(ms)
        return cls(
            days=ms // MS_PER_DAY,
            hours=(ms % MS_PER_DAY) // MS_PER_HOUR,
            minutes=(ms % MS_PER_HOUR) // MS_PER_MINUTE,
        )

    @property
    def total_ms(self) -> int:
        return self.days * MS_PER_DAY + self.hours * MS_PER_HOUR + self.minutes * MS_PER_MINUTE

    def label(self, suffix: str) -> str:
        if self.days > 0:
            return f"{self.days}d {self.hours}h {self.minutes}m {suffix}"
        if self.hours > 0:
            return f"{self.hours}h {self.minutes}m {suffix}"
        return f"{self.minutes}m {suffix}"


@dataclass(frozen=True)
class SlaTimer:
    countdown: Countdown
    is_overdue: bool


@dataclass
class LeadTimer:
    """Derived timer state for one lead."""

    lead_id: Optional[int]
    name: str
    company: str
    status: str
    created_at: datetime
    scheduled_call: Optional[datetime]

    sla: SlaTimer
    is_light_overdue: bool = False
    is_severe_overdue: bool = False
    overdue_days: int = 0
    scheduled_call_overdue: bool = False
    scheduled_call_countdown: Optional[Countdown] = None

    @property
    def is_prospect(self) -> bool:
        return self.status == LeadStatus.PROSPECT.value

    @property
    def in_overdue_set(self) -> bool:
        return (
            self.is_prospect and (self.is_light_overdue or self.is_severe_overdue)
        ) or self.scheduled_call_overdue

    @property
    def severity(self) -> str:
        if self.scheduled_call_overdue or self.is_severe_overdue:
            return SEVERITY_CRITICAL
        if self.is_light_overdue:
            return SEVERITY_WARNING
        return SEVERITY_NORMAL

    @property
    def label(self) -> str:
        if self.scheduled_call_overdue and self.scheduled_call_countdown is not None:
            return f"SC: {self.scheduled_call_countdown.label('overdue')}"
        if not self.is_prospect:
            return "Processed"
        if self.sla.is_overdue:
            return self.sla.countdown.label("overdue")
        return self.sla.countdown.label("left")

    def as_dict(self) -> dict:
        return {
            "lead_id": self.lead_id,
            "name": self.name,
            "company": self.company,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
            "scheduled_call": self.scheduled_call.isoformat() if self.scheduled_call else None,
            "is_overdue": self.sla.is_overdue,
            "days": self.sla.countdown.days,
            "hours": self.sla.countdown.hours,
            "minutes": self.sla.countdown.minutes,
            "overdue_days": self.overdue_days,
            "is_light_overdue": self.is_light_overdue,
            "is_severe_overdue": self.is_severe_overdue,
            "scheduled_call_overdue": self.scheduled_call_overdue,
            "severity": self.severity,
            "label": self.label,
        }


@dataclass
class TimerPanel:
    """What the notification bell shows: every open lead plus the overdue subset."""

    leads: List[LeadTimer] = field(default_factory=list)
    computed_at: Optional[datetime] = None

    @property
    def overdue(self) -> List[LeadTimer]:
        return [t for t in self.leads if t.in_overdue_set]

    def as_dict(self) -> dict:
        overdue = self.overdue
        return {
            "computed_at": self.computed_at.isoformat() if self.computed_at else None,
            "overdue_count": len(overdue),
            "pending_count": len(self.leads) - len(overdue),
            "overdue": [t.as_dict() for t in overdue],
            "leads": [t.as_dict() for t in self.leads],
        }


def _elapsed_ms(delta: timedelta) -> int:
    # Exact integer arithmetic; floating total_seconds() drifts at ms scale.
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def compute_sla_timer(
    created_at: datetime,
    now: datetime,
    sla_days: Optional[int] = None,
) -> SlaTimer:
    """Time left until (or past) the created_at + SLA deadline."""
    if sla_days is None:
        sla_days = settings.lead_sla_days
    deadline = as_utc(created_at) + timedelta(days=sla_days)
    remaining_ms = _elapsed_ms(deadline - as_utc(now))
    if remaining_ms <= 0:
        return SlaTimer(countdown=Countdown.from_ms(remaining_ms), is_overdue=True)
    return SlaTimer(countdown=Countdown.from_ms(remaining_ms), is_overdue=False)


def compute_scheduled_call_overdue(
    scheduled_call: Optional[datetime],
    now: datetime,
) -> Optional[Countdown]:
    """Overdue duration of a past callback, or None if unset or still ahead."""
    if scheduled_call is None:
        return None
    overdue_ms = _elapsed_ms(as_utc(now) - as_utc(scheduled_call))
    if overdue_ms <= 0:
        return None
    return Countdown.from_ms(overdue_ms)


def compute_lead_timer(
    *,
    created_at: datetime,
    status: str,
    now: datetime,
    scheduled_call: Optional[datetime] = None,
    lead_id: Optional[int] = None,
    name: str = "",
    company: str = "",
    sla_days: Optional[int] = None,
    severe_overdue_days: Optional[int] = None,
) -> LeadTimer:
    if severe_overdue_days is None:
        severe_overdue_days = settings.severe_overdue_days

    status = getattr(status, "value", status)
    sla = compute_sla_timer(created_at, now, sla_days)
    sc_countdown = compute_scheduled_call_overdue(scheduled_call, now)

    timer = LeadTimer(
        lead_id=lead_id,
        name=name,
        company=company,
        status=status,
        created_at=as_utc(created_at),
        scheduled_call=as_utc(scheduled_call),
        sla=sla,
        scheduled_call_overdue=sc_countdown is not None,
        scheduled_call_countdown=sc_countdown,
    )

    # Severity buckets only mean something for the prospect SLA.
    if sla.is_overdue and timer.is_prospect:
        timer.overdue_days = sla.countdown.days
        timer.is_light_overdue = timer.overdue_days < severe_overdue_days
        timer.is_severe_overdue = timer.overdue_days >= severe_overdue_days

    return timer


def timer_for_lead(lead: Lead, now: datetime) -> LeadTimer:
    return compute_lead_timer(
        created_at=lead.created_at,
        status=lead.status,
        now=now,
        scheduled_call=lead.scheduled_call,
        lead_id=lead.id,
        name=lead.name or "",
        company=lead.company or "",
    )


def build_panel(leads: Iterable[Lead], now: Optional[datetime] = None) -> TimerPanel:
    now = now or utcnow()
    return TimerPanel(
        leads=[timer_for_lead(lead, now) for lead in leads if lead.created_at is not None],
        computed_at=now,
    )


def fetch_timer_leads(db: Session, user_id: Optional[str] = None) -> List[Lead]:
    """
    Open leads that can carry a timer, oldest first.

    With user_id=None every actor's leads are returned (monitoring room).
    """
    query = (
        db.query(Lead)
        .filter(Lead.status.in_([s.value for s in OPEN_LEAD_STATUSES]))
        .filter(Lead.created_at.isnot(None))
    )
    if user_id is not None:
        query = query.filter(Lead.user_id == user_id)
    leads = query.order_by(Lead.created_at.asc()).all()
    logger.debug("Fetched %d timer leads (user_id=%s)", len(leads), user_id)
    return leads


def load_panel(db: Session, user_id: Optional[str], now: Optional[datetime] = None) -> TimerPanel:
    panel = build_panel(fetch_timer_leads(db, user_id), now)
    logger.info(
        "Lead timers computed (user_id=%s, overdue=%d, total=%d)",
        user_id,
        len(panel.overdue),
        len(panel.leads),
    )
    return panel
