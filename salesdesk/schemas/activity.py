from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from salesdesk.models.enums import ActionType, TargetType


class ActivityIn(BaseModel):
    """Client-side UI action reported by the browser."""

    action_type: ActionType
    action_details: str = Field(..., min_length=1)
    target_type: TargetType
    target_id: Optional[str] = None
    target_name: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ActivityAck(BaseModel):
    logged: bool
