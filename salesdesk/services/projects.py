from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from salesdesk.models import Project
from salesdesk.services.errors import RecordNotFoundError

logger = logging.getLogger("salesdesk.services.projects")


def list_projects(db: Session, search: Optional[str] = None) -> List[Project]:
    """Client solutions are shared by the whole team."""
    query = db.query(Project)
    if search:
        like = f"%{search.lower()}%"
        query = query.filter(
            or_(
                func.lower(Project.title).like(like),
                func.lower(Project.company).like(like),
            )
        )
    return query.order_by(Project.created_at.desc()).all()


def get_project(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if project is None:
        raise RecordNotFoundError("Project", project_id)
    return project


def create_project(db: Session, user_id: str, data: Dict[str, Any]) -> Project:
    project = Project(**data, user_id=user_id)
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info("Created project id=%s title=%s", project.id, project.title)
    return project


def update_project(db: Session, project: Project, data: Dict[str, Any]) -> Project:
    for key, value in data.items():
        setattr(project, key, value)
    db.commit()
    db.refresh(project)
    logger.info("Updated project id=%s", project.id)
    return project


def delete_project(db: Session, project: Project) -> None:
    project_id = project.id
    db.delete(project)
    db.commit()
    logger.info("Deleted project id=%s", project_id)
