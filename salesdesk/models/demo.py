import datetime
from typing import Optional

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text

from salesdesk.db import Base
from salesdesk.models.enums import DemoPriority, DemoStatus
from salesdesk.timeutil import utcnow


class Demo(Base):
    __tablename__ = "demos"

    id: int = Column(Integer, primary_key=True, index=True)
    user_id: str = Column(String(64), index=True, nullable=False)
    title: str = Column(String(255), nullable=False)
    description: Optional[str] = Column(Text, nullable=True)
    priority: str = Column(String(16), nullable=False, default=DemoPriority.MEDIUM.value)
    status: str = Column(
        String(32), index=True, nullable=False, default=DemoStatus.PENDING.value
    )
    due_date: Optional[datetime.date] = Column(Date, nullable=True)
    lead_id: Optional[int] = Column(
        Integer, ForeignKey("leads.id", ondelete="SET NULL"), nullable=True
    )
    project_id: Optional[int] = Column(
        Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True
    )
    created_at: datetime.datetime = Column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
