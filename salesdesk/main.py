from __future__ import annotations

import logging
from typing import Dict

from dotenv import load_dotenv

# Load environment variables from .env at project root
# This runs before the app is created so all downstream modules see the env.
load_dotenv()

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from salesdesk.config import settings
from salesdesk.db import init_db
from salesdesk.routers import activity as activity_router
from salesdesk.routers import admin as admin_router
from salesdesk.routers import dashboard as dashboard_router
from salesdesk.routers import deals as deals_router
from salesdesk.routers import demos as demos_router
from salesdesk.routers import imports as imports_router
from salesdesk.routers import leads as leads_router
from salesdesk.routers import monitoring as monitoring_router
from salesdesk.routers import notifications as notifications_router
from salesdesk.routers import projects as projects_router
from salesdesk.routers import session as session_router
from salesdesk.routers import status_updates as status_updates_router
from salesdesk.routers import treasury as treasury_router
from salesdesk.services.errors import PermissionDeniedError, RecordNotFoundError
from salesdesk.services.leads import DuplicateCompanyError
from salesdesk.services.refreshers import build_refreshers

logger = logging.getLogger("salesdesk.main")


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RecordNotFoundError)
    async def not_found(request: Request, exc: RecordNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(PermissionDeniedError)
    async def forbidden(request: Request, exc: PermissionDeniedError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})

    @app.exception_handler(DuplicateCompanyError)
    async def duplicate_company(request: Request, exc: DuplicateCompanyError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc), "company": exc.company},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "A database error occurred. Please try again."},
        )


def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name, debug=settings.debug)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    # Session + personal views
    app.include_router(session_router.router)
    app.include_router(dashboard_router.router)
    app.include_router(notifications_router.router)
    app.include_router(activity_router.router)

    # CRUD
    app.include_router(leads_router.router)
    app.include_router(imports_router.router)
    app.include_router(projects_router.router)
    app.include_router(demos_router.router)
    app.include_router(deals_router.router)
    app.include_router(status_updates_router.router)

    # Admin
    app.include_router(treasury_router.router)
    app.include_router(monitoring_router.router)
    app.include_router(admin_router.router)

    # Loops are built here but only started on startup
    app.state.refreshers = build_refreshers()

    @app.on_event("startup")
    async def on_startup() -> None:
        """Initialize resources on startup."""
        logger.info("Starting %s...", settings.app_name)
        init_db()
        if settings.enable_refresh_loops:
            for refresher in app.state.refreshers.values():
                refresher.start()
        else:
            logger.info("Refresh loops disabled (ENABLE_REFRESH_LOOPS=false)")
        logger.info("%s started.", settings.app_name)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        for refresher in app.state.refreshers.values():
            await refresher.stop()
        logger.info("%s stopped.", settings.app_name)

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok", "app": settings.app_name}

    return app


app = create_app()
