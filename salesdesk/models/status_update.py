import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from salesdesk.db import Base
from salesdesk.timeutil import utcnow


class StatusUpdate(Base):
    """Append-only comment on a demo or project."""

    __tablename__ = "status_updates"

    id: int = Column(Integer, primary_key=True, index=True)
    user_id: str = Column(String(64), index=True, nullable=False)
    target_type: str = Column(String(16), nullable=False)
    target_id: int = Column(Integer, nullable=False)
    comment: str = Column(Text, nullable=False)
    created_at: datetime.datetime = Column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    __table_args__ = (
        Index("ix_status_updates_target", "target_type", "target_id"),
    )
