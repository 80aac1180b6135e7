import datetime

from sqlalchemy import Column, DateTime, Integer, String

from salesdesk.db import Base
from salesdesk.timeutil import utcnow


class UserRole(Base):
    __tablename__ = "user_roles"

    id: int = Column(Integer, primary_key=True, index=True)
    user_id: str = Column(String(64), unique=True, nullable=False)
    email: str = Column(String(255), nullable=False, default="")
    role: str = Column(String(16), nullable=False)
    created_at: datetime.datetime = Column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
