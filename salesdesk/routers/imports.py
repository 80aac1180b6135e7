import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from salesdesk.auth import SessionContext, get_session_context
from salesdesk.db import get_db
from salesdesk.ingestion.schemas import CSV_TEMPLATE, ImportResult
from salesdesk.ingestion.services import IngestionError, import_leads_from_csv_content
from salesdesk.models.enums import ActionType, TargetType
from salesdesk.routers.deps import user_agent
from salesdesk.services.activity_logger import log_activity

logger = logging.getLogger("salesdesk.routers.imports")

router = APIRouter(
    prefix="/api/imports",
    tags=["imports"],
)


@router.post(
    "/leads",
    response_model=ImportResult,
    summary="Bulk import leads from a spreadsheet CSV",
    description=(
        "Rows are mapped positionally to the template columns. Companies that "
        "already exist (case-insensitive) are counted as duplicates and skipped."
    ),
)
async def import_leads_csv(
    request: Request,
    file: UploadFile = File(...),
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> ImportResult:
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please select a CSV file.",
        )

    try:
        content = await file.read()
        result = import_leads_from_csv_content(
            file_bytes=content,
            db=db,
            user_id=ctx.actor.id,
        )
    except IngestionError as exc:
        logger.error("CSV import error: %s", exc, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - safety net
        logger.exception("Unexpected error during CSV import")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unexpected error during CSV import.",
        ) from exc
    finally:
        await file.close()

    log_activity(
        db,
        user_id=ctx.actor.id,
        user_email=ctx.actor.email,
        action_type=ActionType.CREATE,
        action_details=f"Imported {result.imported} leads from {file.filename}",
        target_type=TargetType.LEAD,
        metadata=result.model_dump(),
        user_agent=user_agent(request),
    )
    return result


@router.get("/template", response_class=PlainTextResponse)
def download_template() -> PlainTextResponse:
    return PlainTextResponse(
        CSV_TEMPLATE,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="leads_template.csv"'},
    )
