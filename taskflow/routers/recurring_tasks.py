# PURPOSE: /recurring-tasks schedules, on-demand generation and previews
# - /generate and /preview are declared before /{id}.

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..api.deps import parse_preview
from ..api.responses import Envelope, envelope
from ..auth import get_current_user
from ..db_models import UserDB
from ..models import (
    GenerateRequest,
    GenerateResult,
    MessageOut,
    PreviewOut,
    PreviewRequest,
    RecurringTaskCreate,
    RecurringTaskData,
    RecurringTaskList,
    RecurringTaskOut,
    RecurringTaskPut,
    RecurringTaskUpdate,
)
from ..recurrence import occurrences, schedule_occurrences
from ..store import get_db
from ..store import recurring as store

router = APIRouter(prefix="/recurring-tasks", tags=["recurring-tasks"])
logger = logging.getLogger("taskflow.recurring")


@router.get("", response_model=Envelope[RecurringTaskList])
def list_recurring_tasks(
    preview: bool = Depends(parse_preview),
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    rows = store.list_schedules(db, owner_id=user.id)
    if not preview:
        return envelope({"recurringTasks": rows})
    items = [
        RecurringTaskOut.model_validate(row).model_copy(
            update={"preview_occurrences": schedule_occurrences(row)}
        )
        for row in rows
    ]
    return envelope({"recurringTasks": items})


@router.post(
    "", response_model=Envelope[RecurringTaskData], status_code=status.HTTP_201_CREATED
)
def create_recurring_task(
    item: RecurringTaskCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    row = store.create_schedule(db, item, owner_id=user.id)
    response.headers["Location"] = f"/api/v1/recurring-tasks/{row.id}"
    logger.info(
        "recurring_task_created recurring_task_id=%s template_id=%s user_id=%s",
        row.id,
        row.template_id,
        user.id,
    )
    return envelope({"recurringTask": row})


@router.post("/generate", response_model=Envelope[GenerateResult])
def generate_tasks(
    item: GenerateRequest | None = None,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    ids = item.ids if item is not None else None
    created = store.generate_tasks(db, owner_id=user.id, ids=ids)
    logger.info("recurring_tasks_generated count=%s user_id=%s", len(created), user.id)
    message = f"Generated {len(created)} tasks" if created else "No tasks were generated"
    return envelope({"generatedTasks": created, "count": len(created), "message": message})


@router.post("/preview", response_model=Envelope[PreviewOut])
def preview_occurrences(item: PreviewRequest, user: UserDB = Depends(get_current_user)):
    found = occurrences(
        item.start_date,
        item.frequency,
        item.interval,
        item.days_of_week,
        item.day_of_month,
        item.month_of_year,
        count=item.count,
        end=item.end_date,
    )
    return envelope({"occurrences": found})


@router.get("/{recurring_task_id}", response_model=Envelope[RecurringTaskData])
def get_recurring_task(
    recurring_task_id: int, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)
):
    return envelope({"recurringTask": store.get_schedule(db, recurring_task_id, owner_id=user.id)})


@router.put("/{recurring_task_id}", response_model=Envelope[RecurringTaskData])
def put_recurring_task(
    recurring_task_id: int,
    item: RecurringTaskPut,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    row = store.replace_schedule(db, recurring_task_id, item, owner_id=user.id)
    return envelope({"recurringTask": row})


@router.patch("/{recurring_task_id}", response_model=Envelope[RecurringTaskData])
def patch_recurring_task(
    recurring_task_id: int,
    item: RecurringTaskUpdate,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    row = store.update_schedule(db, recurring_task_id, item, owner_id=user.id)
    return envelope({"recurringTask": row})


@router.delete("/{recurring_task_id}", response_model=Envelope[MessageOut])
def delete_recurring_task(
    recurring_task_id: int, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)
):
    store.delete_schedule(db, recurring_task_id, owner_id=user.id)
    logger.info("recurring_task_deleted recurring_task_id=%s user_id=%s", recurring_task_id, user.id)
    return envelope({"message": "Recurring task deleted successfully"})
