import datetime
from typing import Optional

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text

from salesdesk.db import Base
from salesdesk.models.enums import DealStatus, PaymentType
from salesdesk.timeutil import utcnow


class Deal(Base):
    """A closed deal. Salesman identity is denormalized onto the row."""

    __tablename__ = "deals"

    id: int = Column(Integer, primary_key=True, index=True)
    user_id: str = Column(String(64), index=True, nullable=False)
    lead_id: Optional[int] = Column(
        Integer, ForeignKey("leads.id", ondelete="SET NULL"), nullable=True
    )
    title: str = Column(String(255), nullable=False)
    company: str = Column(String(255), nullable=False)
    description: Optional[str] = Column(Text, nullable=True)

    deal_value: float = Column(Float, nullable=False, default=0.0)
    payment_type: str = Column(
        String(16), nullable=False, default=PaymentType.ONE_TIME.value
    )
    monthly_amount: float = Column(Float, nullable=False, default=0.0)
    installation_fee: float = Column(Float, nullable=False, default=0.0)
    contract_length_months: int = Column(Integer, nullable=False, default=0)
    closed_date: datetime.date = Column(Date, nullable=False, index=True)
    status: str = Column(
        String(16), index=True, nullable=False, default=DealStatus.ACTIVE.value
    )

    salesman_name: Optional[str] = Column(String(255), nullable=True)
    salesman_email: Optional[str] = Column(String(255), index=True, nullable=True)

    created_at: datetime.datetime = Column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    updated_at: datetime.datetime = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_deals_salesman_closed", "salesman_email", "closed_date"),
    )
