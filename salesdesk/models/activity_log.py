import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from salesdesk.db import Base
from salesdesk.timeutil import utcnow


class ActivityLog(Base):
    """Audit trail of UI actions. Written by the app, never read back by it."""

    __tablename__ = "activity_logs"

    id: int = Column(Integer, primary_key=True, index=True)
    user_id: str = Column(String(64), index=True, nullable=False)
    user_email: str = Column(String(255), nullable=False, default="")
    action_type: str = Column(String(32), index=True, nullable=False)
    action_details: str = Column(Text, nullable=False)
    target_type: str = Column(String(32), nullable=False)
    target_id: Optional[str] = Column(String(64), nullable=True)
    target_name: Optional[str] = Column(String(255), nullable=True)
    # "metadata" is reserved on declarative classes
    details: Dict[str, Any] = Column("metadata", JSON, nullable=True)
    user_agent: Optional[str] = Column(String(512), nullable=True)
    timestamp: datetime.datetime = Column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
