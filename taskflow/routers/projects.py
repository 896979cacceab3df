# PURPOSE: /projects CRUD; DELETE honours ?cascade=true

import logging

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..api.deps import parse_cascade
from ..api.responses import Envelope, envelope
from ..auth import get_current_user
from ..db_models import UserDB
from ..models import (
    ProjectCreate,
    ProjectData,
    ProjectDeleted,
    ProjectList,
    ProjectPut,
    ProjectStatus,
    ProjectUpdate,
)
from ..store import get_db
from ..store import projects as store

router = APIRouter(prefix="/projects", tags=["projects"])
logger = logging.getLogger("taskflow.projects")


@router.get("", response_model=Envelope[ProjectList])
def list_projects(
    status_filter: ProjectStatus | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return envelope({"projects": store.list_projects(db, owner_id=user.id, status=status_filter)})


@router.post("", response_model=Envelope[ProjectData], status_code=status.HTTP_201_CREATED)
def create_project(
    item: ProjectCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    project = store.create_project(db, item, owner_id=user.id)
    response.headers["Location"] = f"/api/v1/projects/{project.id}"
    logger.info("project_created project_id=%s user_id=%s", project.id, user.id)
    return envelope({"project": project})


@router.get("/{project_id}", response_model=Envelope[ProjectData])
def get_project(
    project_id: int, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)
):
    return envelope({"project": store.get_project(db, project_id, owner_id=user.id)})


@router.put("/{project_id}", response_model=Envelope[ProjectData])
def put_project(
    project_id: int,
    item: ProjectPut,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return envelope({"project": store.replace_project(db, project_id, item, owner_id=user.id)})


@router.patch("/{project_id}", response_model=Envelope[ProjectData])
def patch_project(
    project_id: int,
    item: ProjectUpdate,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return envelope({"project": store.update_project(db, project_id, item, owner_id=user.id)})


@router.delete("/{project_id}", response_model=Envelope[ProjectDeleted])
def delete_project(
    project_id: int,
    cascade: bool = Depends(parse_cascade),
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    deleted = store.delete_project(db, project_id, owner_id=user.id, cascade=cascade)
    logger.info(
        "project_deleted project_id=%s user_id=%s tasks_deleted=%s", project_id, user.id, deleted
    )
    return envelope({"message": "Project deleted successfully", "tasks_deleted": deleted})
