from __future__ import annotations

from typing import Optional

from fastapi import Request

from salesdesk.services.polling import PeriodicRefresher


def get_refresher(request: Request, name: str) -> Optional[PeriodicRefresher]:
    refreshers = getattr(request.app.state, "refreshers", None) or {}
    return refreshers.get(name)


def user_agent(request: Request) -> Optional[str]:
    return request.headers.get("user-agent")
