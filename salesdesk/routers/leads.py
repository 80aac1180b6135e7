import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from salesdesk.auth import SessionContext, get_session_context
from salesdesk.db import get_db
from salesdesk.models.enums import ActionType, CallStatus, LeadStatus, TargetType
from salesdesk.routers.deps import user_agent
from salesdesk.schemas.leads import (
    DeleteResult,
    DuplicateCheckOut,
    LeadIdsIn,
    LeadIn,
    LeadOut,
    LeadQuickEdit,
    ScheduleCallIn,
)
from salesdesk.services import leads as lead_service
from salesdesk.services.activity_logger import log_activity

logger = logging.getLogger("salesdesk.routers.leads")

router = APIRouter(prefix="/api/leads", tags=["leads"])


def _log(
    request: Request,
    ctx: SessionContext,
    db: Session,
    action: ActionType,
    details: str,
    lead=None,
    **metadata,
) -> None:
    log_activity(
        db,
        user_id=ctx.actor.id,
        user_email=ctx.actor.email,
        action_type=action,
        action_details=details,
        target_type=TargetType.LEAD,
        target_id=lead.id if lead is not None else None,
        target_name=lead.company if lead is not None else None,
        metadata=metadata or None,
        user_agent=user_agent(request),
    )


@router.get("", response_model=List[LeadOut])
def list_leads(
    search: Optional[str] = Query(default=None),
    status_filter: Optional[LeadStatus] = Query(default=None, alias="status"),
    call_status: Optional[CallStatus] = Query(default=None),
    industry: Optional[str] = Query(default=None),
    sort: str = Query(default="revenue", pattern="^(revenue|newest)$"),
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> List[LeadOut]:
    leads = lead_service.list_leads(
        db,
        ctx.actor.id,
        search=search,
        status=status_filter.value if status_filter else None,
        call_status=call_status.value if call_status else None,
        industry=industry,
        sort=sort,
    )
    return [LeadOut.model_validate(lead) for lead in leads]


@router.get("/industries", response_model=List[str])
def list_industries(
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> List[str]:
    return lead_service.list_industries(db, ctx.actor.id)


@router.get("/duplicate-check", response_model=DuplicateCheckOut)
def duplicate_check(
    company: str = Query(..., min_length=1),
    exclude_id: Optional[int] = Query(default=None),
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DuplicateCheckOut:
    """Advisory check used while the lead form is being filled in."""
    existing = lead_service.check_duplicate_company(db, company, exclude_id)
    return DuplicateCheckOut(
        company=company.strip(),
        duplicate=existing is not None,
        existing_lead_id=existing,
    )


@router.get("/{lead_id}", response_model=LeadOut)
def read_lead(
    lead_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> LeadOut:
    return LeadOut.model_validate(lead_service.get_lead(db, lead_id, ctx.actor.id))


@router.post("", response_model=LeadOut, status_code=status.HTTP_201_CREATED)
def create_lead(
    payload: LeadIn,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> LeadOut:
    lead = lead_service.create_lead(db, ctx.actor.id, payload.model_dump())
    _log(request, ctx, db, ActionType.CREATE, f"Created lead {lead.name}", lead)
    return LeadOut.model_validate(lead)


@router.put("/{lead_id}", response_model=LeadOut)
def update_lead(
    lead_id: int,
    payload: LeadIn,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> LeadOut:
    lead = lead_service.get_lead(db, lead_id, ctx.actor.id)
    lead = lead_service.update_lead(db, lead, payload.model_dump())
    _log(request, ctx, db, ActionType.EDIT, f"Updated lead {lead.name}", lead)
    return LeadOut.model_validate(lead)


@router.patch("/{lead_id}", response_model=LeadOut)
def quick_edit_lead(
    lead_id: int,
    payload: LeadQuickEdit,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> LeadOut:
    if payload.status is None and payload.call_status is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Provide status or call_status.",
        )
    lead = lead_service.get_lead(db, lead_id, ctx.actor.id)
    changes = lead_service.quick_edit_lead(
        db,
        lead,
        status=payload.status,
        call_status=payload.call_status,
    )
    for field_name, (old, new) in changes.items():
        _log(
            request,
            ctx,
            db,
            ActionType.EDIT,
            f"Changed {field_name} from {old} to {new}",
            lead,
            field=field_name,
            old_value=old,
            new_value=new,
        )
    return LeadOut.model_validate(lead)


@router.put("/{lead_id}/scheduled-call", response_model=LeadOut)
def schedule_call(
    lead_id: int,
    payload: ScheduleCallIn,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> LeadOut:
    lead = lead_service.get_lead(db, lead_id, ctx.actor.id)
    lead = lead_service.schedule_call(db, lead, payload.scheduled_call)
    _log(
        request,
        ctx,
        db,
        ActionType.CALL,
        f"Scheduled call with {lead.name}",
        lead,
        scheduled_call=payload.scheduled_call.isoformat(),
    )
    return LeadOut.model_validate(lead)


@router.delete("/{lead_id}/scheduled-call", response_model=LeadOut)
def clear_scheduled_call(
    lead_id: int,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> LeadOut:
    lead = lead_service.get_lead(db, lead_id, ctx.actor.id)
    lead = lead_service.schedule_call(db, lead, None)
    _log(request, ctx, db, ActionType.CALL, f"Cleared scheduled call for {lead.name}", lead)
    return LeadOut.model_validate(lead)


@router.delete("/{lead_id}", response_model=DeleteResult)
def delete_lead(
    lead_id: int,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DeleteResult:
    lead = lead_service.get_lead(db, lead_id, ctx.actor.id)
    name, company = lead.name, lead.company
    lead_service.delete_lead(db, lead)
    log_activity(
        db,
        user_id=ctx.actor.id,
        user_email=ctx.actor.email,
        action_type=ActionType.DELETE,
        action_details=f"Deleted lead {name}",
        target_type=TargetType.LEAD,
        target_id=lead_id,
        target_name=company,
        user_agent=user_agent(request),
    )
    return DeleteResult(deleted=1)


@router.post("/delete-selected", response_model=DeleteResult)
def delete_selected_leads(
    payload: LeadIdsIn,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DeleteResult:
    deleted = lead_service.delete_leads(db, ctx.actor.id, payload.ids)
    _log(request, ctx, db, ActionType.DELETE, f"Deleted {deleted} selected leads", ids=payload.ids)
    return DeleteResult(deleted=deleted)


@router.delete("", response_model=DeleteResult)
def delete_all_leads(
    request: Request,
    confirm: bool = Query(default=False),
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DeleteResult:
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deleting all leads requires confirm=true.",
        )
    deleted = lead_service.delete_all_leads(db, ctx.actor.id)
    _log(request, ctx, db, ActionType.DELETE, f"Deleted all leads ({deleted})")
    return DeleteResult(deleted=deleted)
