import datetime
from typing import Optional

from sqlalchemy import Column, Date, DateTime, Integer, String, Text

from salesdesk.db import Base
from salesdesk.timeutil import utcnow


class Project(Base):
    """A client solution being prepared for a company."""

    __tablename__ = "projects"

    id: int = Column(Integer, primary_key=True, index=True)
    user_id: str = Column(String(64), index=True, nullable=False)
    title: str = Column(String(255), nullable=False)
    company: str = Column(String(255), nullable=False)
    description: Optional[str] = Column(Text, nullable=True)
    # Expected close date
    deadline: Optional[datetime.date] = Column(Date, nullable=True)
    notes: Optional[str] = Column(Text, nullable=True)
    created_at: datetime.datetime = Column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
