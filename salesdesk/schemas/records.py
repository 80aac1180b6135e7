from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from salesdesk.models.enums import DemoPriority, DemoStatus, StatusUpdateTarget
from salesdesk.timeutil import utcnow


# ---------------------------------------------------------------------------
# Projects ("client solutions")
# ---------------------------------------------------------------------------

class ProjectIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    company: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    deadline: Optional[date] = Field(
        default=None,
        description="Expected close date.",
    )
    notes: Optional[str] = None


class ProjectOut(BaseModel):
    id: int
    user_id: str
    title: str
    company: str
    description: Optional[str] = None
    deadline: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Demos
# ---------------------------------------------------------------------------

class DemoIn(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    priority: DemoPriority = DemoPriority.MEDIUM
    status: DemoStatus = DemoStatus.PENDING
    due_date: Optional[date] = None
    lead_id: Optional[int] = None
    project_id: Optional[int] = None


class DemoStatusIn(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    status: DemoStatus


class DemoOut(BaseModel):
    id: int
    user_id: str
    title: str
    description: Optional[str] = None
    priority: str
    status: str
    due_date: Optional[date] = None
    lead_id: Optional[int] = None
    project_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def is_overdue(self) -> bool:
        if self.status == DemoStatus.COMPLETED.value or self.due_date is None:
            return False
        return self.due_date < utcnow().date()


# ---------------------------------------------------------------------------
# Status updates
# ---------------------------------------------------------------------------

class StatusUpdateIn(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    target_type: StatusUpdateTarget
    target_id: int
    comment: str = Field(..., min_length=1)


class StatusUpdateOut(BaseModel):
    id: int
    user_id: str
    target_type: str
    target_id: int
    comment: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
