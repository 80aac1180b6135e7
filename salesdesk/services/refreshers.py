from __future__ import annotations

import logging
from typing import Dict

from salesdesk.config import settings
from salesdesk.db import session_scope
from salesdesk.services.lead_timers import TimerPanel, load_panel
from salesdesk.services.monitoring import SystemStats, load_system_stats
from salesdesk.services.polling import PeriodicRefresher

logger = logging.getLogger("salesdesk.services.refreshers")

LEAD_TIMERS = "lead_timers"
MONITORING = "monitoring"


def load_lead_timer_snapshot() -> TimerPanel:
    """Timer panel over every actor's open leads."""
    with session_scope() as db:
        return load_panel(db, None)


def load_monitoring_snapshot() -> SystemStats:
    with session_scope() as db:
        return load_system_stats(db)


def build_refreshers() -> Dict[str, PeriodicRefresher]:
    refreshers: Dict[str, PeriodicRefresher] = {
        LEAD_TIMERS: PeriodicRefresher(
            LEAD_TIMERS,
            load_lead_timer_snapshot,
            settings.lead_timer_interval_seconds,
        ),
        MONITORING: PeriodicRefresher(
            MONITORING,
            load_monitoring_snapshot,
            settings.monitoring_interval_seconds,
        ),
    }
    logger.debug("Built refreshers: %s", ", ".join(refreshers))
    return refreshers
