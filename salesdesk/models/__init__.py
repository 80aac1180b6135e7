"""
Models package for the SalesDesk backend.

Imports and exposes ORM models so they are registered with Base.metadata.
"""

import logging

from salesdesk.db import Base
from .activity_log import ActivityLog  # noqa: F401
from .deal import Deal  # noqa: F401
from .demo import Demo  # noqa: F401
from .lead import Lead  # noqa: F401
from .project import Project  # noqa: F401
from .status_update import StatusUpdate  # noqa: F401
from .user_role import UserRole  # noqa: F401

logger = logging.getLogger("salesdesk.models")

__all__ = [
    "ActivityLog",
    "Base",
    "Deal",
    "Demo",
    "Lead",
    "Project",
    "StatusUpdate",
    "UserRole",
]
