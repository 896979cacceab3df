# PURPOSE: /templates CRUD and turning a template into a task

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..api.responses import Envelope, envelope
from ..auth import get_current_user
from ..db_models import UserDB
from ..models import (
    MessageOut,
    TaskData,
    TemplateCreate,
    TemplateData,
    TemplateInstantiate,
    TemplateList,
    TemplatePut,
    TemplateUpdate,
)
from ..store import get_db
from ..store import templates as store

router = APIRouter(prefix="/templates", tags=["templates"])
logger = logging.getLogger("taskflow.templates")


@router.get("", response_model=Envelope[TemplateList])
def list_templates(db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)):
    return envelope({"templates": store.list_templates(db, owner_id=user.id)})


@router.post("", response_model=Envelope[TemplateData], status_code=status.HTTP_201_CREATED)
def create_template(
    item: TemplateCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    template = store.create_template(db, item, owner_id=user.id)
    response.headers["Location"] = f"/api/v1/templates/{template.id}"
    logger.info("template_created template_id=%s user_id=%s", template.id, user.id)
    return envelope({"template": template})


@router.get("/{template_id}", response_model=Envelope[TemplateData])
def get_template(
    template_id: int, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)
):
    return envelope({"template": store.get_template(db, template_id, owner_id=user.id)})


@router.put("/{template_id}", response_model=Envelope[TemplateData])
def put_template(
    template_id: int,
    item: TemplatePut,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return envelope({"template": store.replace_template(db, template_id, item, owner_id=user.id)})


@router.patch("/{template_id}", response_model=Envelope[TemplateData])
def patch_template(
    template_id: int,
    item: TemplateUpdate,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return envelope({"template": store.update_template(db, template_id, item, owner_id=user.id)})


@router.delete("/{template_id}", response_model=Envelope[MessageOut])
def delete_template(
    template_id: int, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)
):
    store.delete_template(db, template_id, owner_id=user.id)
    logger.info("template_deleted template_id=%s user_id=%s", template_id, user.id)
    return envelope({"message": "Template deleted successfully"})


@router.post(
    "/{template_id}/tasks", response_model=Envelope[TaskData], status_code=status.HTTP_201_CREATED
)
def create_task_from_template(
    template_id: int,
    response: Response,
    item: TemplateInstantiate | None = None,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    task = store.instantiate_template(
        db, template_id, item or TemplateInstantiate(), owner_id=user.id
    )
    response.headers["Location"] = f"/api/v1/tasks/{task.id}"
    logger.info("template_used template_id=%s task_id=%s user_id=%s", template_id, task.id, user.id)
    return envelope({"task": task})
