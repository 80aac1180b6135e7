from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from salesdesk.models.enums import DealStatus, PaymentType


class DealIn(BaseModel):
    """
    Deal form payload.

    Salesman name/email default to the signed-in actor when omitted.
    """

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    title: str = Field(..., min_length=1, max_length=255)
    company: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    lead_id: Optional[int] = None
    deal_value: float = Field(default=0.0, ge=0)
    payment_type: PaymentType = PaymentType.ONE_TIME
    monthly_amount: float = Field(default=0.0, ge=0)
    installation_fee: float = Field(default=0.0, ge=0)
    contract_length_months: int = Field(default=0, ge=0)
    closed_date: date
    status: DealStatus = DealStatus.ACTIVE
    salesman_name: Optional[str] = None
    salesman_email: Optional[EmailStr] = None

    @field_validator("salesman_name", "salesman_email", mode="before")
    @classmethod
    def blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class DealOut(BaseModel):
    id: int
    user_id: str
    lead_id: Optional[int] = None
    title: str
    company: str
    description: Optional[str] = None
    deal_value: float
    payment_type: str
    monthly_amount: float
    installation_fee: float
    contract_length_months: int
    closed_date: date
    status: str
    salesman_name: Optional[str] = None
    salesman_email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
