from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Final

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from salesdesk.services.revenue import format_currency

logger = logging.getLogger("salesdesk.services.render")

PACKAGE_DIR: Final[Path] = Path(__file__).resolve().parent.parent
TEMPLATE_DIR: Final[Path] = PACKAGE_DIR / "templates"

logger.debug("Template dir: %s", TEMPLATE_DIR)

templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
templates.env.filters["currency"] = format_currency


def render_template(name: str, context: Dict[str, Any]) -> HTMLResponse:
    """
    Thin wrapper around Starlette's TemplateResponse so routers can
    render Jinja templates with a consistent API.

    Expects `context` to include a `request` key.
    """
    request = context.get("request")
    if not isinstance(request, Request):
        raise ValueError(
            "Context passed to render_template must include a 'request' key "
            "with a FastAPI Request instance."
        )
    return templates.TemplateResponse(request, name, context)
