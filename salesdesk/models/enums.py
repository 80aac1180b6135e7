from __future__ import annotations

from enum import Enum


class LeadStatus(str, Enum):
    """Pipeline stage of a lead."""

    PROSPECT = "prospect"
    QUALIFIED = "qualified"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    CLOSED_WON = "closed-won"
    CLOSED_LOST = "closed-lost"


# Leads still being worked; the timer panel only looks at these.
OPEN_LEAD_STATUSES = (
    LeadStatus.PROSPECT,
    LeadStatus.QUALIFIED,
    LeadStatus.PROPOSAL,
    LeadStatus.NEGOTIATION,
)


class CallStatus(str, Enum):
    NOT_CALLED = "not_called"
    ANSWERED = "answered"
    NO_RESPONSE = "no_response"
    VOICEMAIL = "voicemail"
    BUSY = "busy"
    WRONG_NUMBER = "wrong_number"


class DemoStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class DemoPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PaymentType(str, Enum):
    ONE_TIME = "one_time"
    MONTHLY = "monthly"


class DealStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Role(str, Enum):
    ADMIN = "admin"
    SALESMAN = "salesman"


class StatusUpdateTarget(str, Enum):
    DEMO = "demo"
    PROJECT = "project"


class ActionType(str, Enum):
    CLICK = "click"
    VIEW = "view"
    EDIT = "edit"
    CREATE = "create"
    DELETE = "delete"
    CALL = "call"
    EMAIL = "email"
    NAVIGATE = "navigate"


class TargetType(str, Enum):
    LEAD = "lead"
    PROJECT = "project"
    DEMO = "demo"
    DEAL = "deal"
    BUTTON = "button"
    FORM = "form"
    PAGE = "page"
    FILTER = "filter"
