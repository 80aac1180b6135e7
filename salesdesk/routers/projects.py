import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from salesdesk.auth import SessionContext, get_session_context
from salesdesk.db import get_db
from salesdesk.models.enums import ActionType, TargetType
from salesdesk.routers.deps import user_agent
from salesdesk.schemas.leads import DeleteResult
from salesdesk.schemas.records import ProjectIn, ProjectOut
from salesdesk.services import projects as project_service
from salesdesk.services.activity_logger import log_activity

logger = logging.getLogger("salesdesk.routers.projects")

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("", response_model=List[ProjectOut])
def list_projects(
    search: Optional[str] = Query(default=None),
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> List[ProjectOut]:
    return [ProjectOut.model_validate(p) for p in project_service.list_projects(db, search)]


@router.get("/{project_id}", response_model=ProjectOut)
def read_project(
    project_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> ProjectOut:
    return ProjectOut.model_validate(project_service.get_project(db, project_id))


@router.post("", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectIn,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> ProjectOut:
    project = project_service.create_project(db, ctx.actor.id, payload.model_dump())
    log_activity(
        db,
        user_id=ctx.actor.id,
        user_email=ctx.actor.email,
        action_type=ActionType.CREATE,
        action_details=f"Created client solution {project.title}",
        target_type=TargetType.PROJECT,
        target_id=project.id,
        target_name=project.title,
        user_agent=user_agent(request),
    )
    return ProjectOut.model_validate(project)


@router.put("/{project_id}", response_model=ProjectOut)
def update_project(
    project_id: int,
    payload: ProjectIn,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> ProjectOut:
    project = project_service.get_project(db, project_id)
    project = project_service.update_project(db, project, payload.model_dump())
    log_activity(
        db,
        user_id=ctx.actor.id,
        user_email=ctx.actor.email,
        action_type=ActionType.EDIT,
        action_details=f"Updated client solution {project.title}",
        target_type=TargetType.PROJECT,
        target_id=project.id,
        target_name=project.title,
        user_agent=user_agent(request),
    )
    return ProjectOut.model_validate(project)


@router.delete("/{project_id}", response_model=DeleteResult)
def delete_project(
    project_id: int,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> DeleteResult:
    project = project_service.get_project(db, project_id)
    title = project.title
    project_service.delete_project(db, project)
    log_activity(
        db,
        user_id=ctx.actor.id,
        user_email=ctx.actor.email,
        action_type=ActionType.DELETE,
        action_details=f"Deleted client solution {title}",
        target_type=TargetType.PROJECT,
        target_id=project_id,
        target_name=title,
        user_agent=user_agent(request),
    )
    return DeleteResult(deleted=1)
