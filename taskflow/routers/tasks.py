# PURPOSE: /tasks CRUD, filters + ordering + pagination, history, bulk ops
# - List returns X-Total-Count (total rows for the filters, ignoring paging).

import logging

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..api.deps import (
    OrderBy,
    OrderDir,
    TaskStatus,
    parse_order_by,
    parse_order_dir,
    parse_priority,
    parse_task_status,
)
from ..api.responses import Envelope, envelope
from ..auth import get_current_user
from ..db_models import UserDB
from ..models import (
    BulkCompleted,
    BulkDeleted,
    HistoryList,
    MessageOut,
    Priority,
    TaskCreate,
    TaskData,
    TaskIdList,
    TaskList,
    TaskPut,
    TaskUpdate,
)
from ..store import get_db
from ..store import history as history_store
from ..store import tasks as store

router = APIRouter(prefix="/tasks", tags=["tasks"])
logger = logging.getLogger("taskflow.tasks")


@router.get("", response_model=Envelope[TaskList])
def list_tasks(
    response: Response,
    task_status: TaskStatus | None = Depends(parse_task_status),
    priority: Priority | None = Depends(parse_priority),
    q: str | None = Query(None, max_length=200),
    project_id: int | None = Query(None, alias="projectId"),
    goal_id: int | None = Query(None, alias="goalId"),
    parent_id: int | None = Query(None, alias="parentId"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    order_by: OrderBy = Depends(parse_order_by),
    order_dir: OrderDir = Depends(parse_order_dir),
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    filters = dict(
        status=task_status,
        priority=priority,
        q=q,
        project_id=project_id,
        goal_id=goal_id,
        parent_id=parent_id,
    )
    total = store.count_tasks(db, owner_id=user.id, **filters)
    items = store.list_tasks(
        db,
        owner_id=user.id,
        limit=limit,
        offset=offset,
        order_by=order_by,
        order_dir=order_dir,
        **filters,
    )
    response.headers["X-Total-Count"] = str(total)
    return envelope({"tasks": items})


@router.post("", response_model=Envelope[TaskData], status_code=status.HTTP_201_CREATED)
def create_task(
    item: TaskCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    task = store.create_task(db, item, owner_id=user.id)
    response.headers["Location"] = f"/api/v1/tasks/{task.id}"
    logger.info("task_created task_id=%s user_id=%s", task.id, user.id)
    return envelope({"task": task})


@router.get("/{task_id}", response_model=Envelope[TaskData])
def get_task(task_id: int, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)):
    return envelope({"task": store.get_task(db, task_id, owner_id=user.id)})


@router.get("/{task_id}/history", response_model=Envelope[HistoryList])
def get_task_history(
    task_id: int, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)
):
    return envelope({"history": history_store.list_task_history(db, task_id, owner_id=user.id)})


@router.put("/{task_id}", response_model=Envelope[TaskData])
def put_task(
    task_id: int,
    item: TaskPut,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return envelope({"task": store.replace_task(db, task_id, item, owner_id=user.id)})


@router.patch("/{task_id}", response_model=Envelope[TaskData])
def patch_task(
    task_id: int,
    item: TaskUpdate,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return envelope({"task": store.update_task(db, task_id, item, owner_id=user.id)})


@router.delete("/{task_id}", response_model=Envelope[MessageOut])
def delete_task(task_id: int, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)):
    store.delete_task(db, task_id, owner_id=user.id)
    logger.info("task_deleted task_id=%s user_id=%s", task_id, user.id)
    return envelope({"message": "Task deleted successfully"})


@router.post("/bulk_delete", response_model=Envelope[BulkDeleted])
def bulk_delete(
    payload: TaskIdList, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)
):
    deleted = store.bulk_delete_tasks(db, payload.ids, owner_id=user.id)
    return envelope({"deleted": deleted})


@router.post("/bulk_complete", response_model=Envelope[BulkCompleted])
def bulk_complete(
    payload: TaskIdList, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)
):
    updated = store.bulk_complete_tasks(db, payload.ids, owner_id=user.id)
    return envelope({"updated": updated})
