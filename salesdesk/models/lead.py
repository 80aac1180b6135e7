import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, func

from salesdesk.db import Base
from salesdesk.models.enums import CallStatus, LeadStatus
from salesdesk.timeutil import utcnow


class Lead(Base):
    """A prospective customer company and its contact person."""

    __tablename__ = "leads"

    id: int = Column(Integer, primary_key=True, index=True)
    user_id: str = Column(String(64), index=True, nullable=False)

    name: str = Column(String(255), nullable=False)
    email: Optional[str] = Column(String(255), nullable=True)
    phone: Optional[str] = Column(String(64), nullable=True)
    company: str = Column(String(255), nullable=False)
    position: Optional[str] = Column(String(255), nullable=True)

    status: str = Column(
        String(32), index=True, nullable=False, default=LeadStatus.PROSPECT.value
    )
    call_status: str = Column(
        String(32), index=True, nullable=False, default=CallStatus.NOT_CALLED.value
    )

    # Free text as typed by the salesman ("€1M", "500k", ...)
    revenue: Optional[str] = Column(String(64), nullable=True)
    notes: Optional[str] = Column(Text, nullable=True)
    industry: Optional[str] = Column(String(255), index=True, nullable=True)
    website: Optional[str] = Column(String(255), nullable=True)
    ceo: Optional[str] = Column(String(255), nullable=True)
    whose_phone: Optional[str] = Column(String(255), nullable=True)
    go_skip: Optional[str] = Column(String(255), nullable=True)

    last_contact: Optional[datetime.datetime] = Column(DateTime(timezone=True), nullable=True)
    scheduled_call: Optional[datetime.datetime] = Column(DateTime(timezone=True), nullable=True)

    created_at: datetime.datetime = Column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    updated_at: datetime.datetime = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


# Authoritative guard for "one lead per company", case-insensitive.
Index("leads_company_unique", func.lower(Lead.company), unique=True)
