from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field, field_validator

from salesdesk.models.enums import CallStatus, LeadStatus
from salesdesk.services.revenue import format_revenue
from salesdesk.timeutil import as_utc


class LeadIn(BaseModel):
    """
    Lead form payload. Used for both create and full update.
    """

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    name: str = Field(..., min_length=1, max_length=255)
    company: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    status: LeadStatus = LeadStatus.PROSPECT
    call_status: CallStatus = CallStatus.NOT_CALLED
    revenue: Optional[str] = None
    notes: Optional[str] = None
    industry: Optional[str] = None
    website: Optional[str] = None
    ceo: Optional[str] = None
    whose_phone: Optional[str] = None
    go_skip: Optional[str] = None
    scheduled_call: Optional[datetime] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("company")
    @classmethod
    def strip_company(cls, v: str) -> str:
        """Store company trimmed but keep its case."""
        v = v.strip()
        if not v:
            raise ValueError("company must not be blank")
        return v

    @field_validator("website")
    @classmethod
    def normalize_website(cls, v: Optional[str]) -> Optional[str]:
        """Make website optional + auto-add https:// when missing."""
        if not v:
            return v
        v = v.strip()
        if not v:
            return None
        if not v.startswith(("http://", "https://")):
            v = "https://" + v
        return v


class LeadQuickEdit(BaseModel):
    """Inline dropdown edit from the lead table."""

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    status: Optional[LeadStatus] = None
    call_status: Optional[CallStatus] = None


class ScheduleCallIn(BaseModel):
    scheduled_call: datetime

    @field_validator("scheduled_call")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class LeadIdsIn(BaseModel):
    ids: List[int] = Field(..., min_length=1)


class LeadOut(BaseModel):
    id: int
    user_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    company: str
    position: Optional[str] = None
    status: str
    call_status: str
    revenue: Optional[str] = None
    notes: Optional[str] = None
    industry: Optional[str] = None
    website: Optional[str] = None
    ceo: Optional[str] = None
    whose_phone: Optional[str] = None
    go_skip: Optional[str] = None
    last_contact: Optional[datetime] = None
    scheduled_call: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def revenue_display(self) -> str:
        return format_revenue(self.revenue)


class DuplicateCheckOut(BaseModel):
    company: str
    duplicate: bool
    existing_lead_id: Optional[int] = None


class DeleteResult(BaseModel):
    deleted: int
