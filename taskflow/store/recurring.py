# PURPOSE: recurring schedules; each one turns a template into a new task
# whenever it comes due.
# - One schedule per template and user.
# - A run creates one task per schedule, then moves next_due_date one step on.
# - A schedule is finished once `count` tasks were generated or the next due
#   date passes `end_date`; finished schedules are skipped by runs.

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session, selectinload

from ..api.errors import BadRequest, Conflict, NotFound
from ..db_models import RecurringTaskDB, TaskDB, TaskTemplateDB, now_utc
from ..recurrence import next_occurrence
from . import tasks as task_store
from .common import load_owned_one, owned_query
from .templates import task_fields

NOT_FOUND = "Recurring task not found or access denied"
TEMPLATE_TAKEN = "A recurring schedule already exists for this template"
RULE_FIELDS: tuple[str, ...] = (
    "frequency",
    "interval",
    "days_of_week",
    "day_of_month",
    "month_of_year",
    "next_due_date",
    "start_date",
    "end_date",
    "count",
)


def is_finished(row: RecurringTaskDB) -> bool:
    if row.count is not None and row.generated_count >= row.count:
        return True
    return row.end_date is not None and row.next_due_date > row.end_date


def list_schedules(db: Session, *, owner_id: int) -> list[RecurringTaskDB]:
    return (
        owned_query(db, RecurringTaskDB, owner_id=owner_id)
        .options(selectinload(RecurringTaskDB.template))
        .order_by(RecurringTaskDB.next_due_date.asc(), RecurringTaskDB.id.asc())
        .all()
    )


def get_schedule(db: Session, schedule_id: int, *, owner_id: int) -> RecurringTaskDB:
    """Another user's schedule reads as missing."""
    row = (
        owned_query(db, RecurringTaskDB, owner_id=owner_id)
        .filter(RecurringTaskDB.id == schedule_id)
        .one_or_none()
    )
    if row is None:
        raise NotFound(NOT_FOUND)
    return row


def _template_taken(db: Session, template_id: int, *, owner_id: int, exclude_id: int | None = None) -> bool:
    query = owned_query(db, RecurringTaskDB, owner_id=owner_id).filter(
        RecurringTaskDB.template_id == template_id
    )
    if exclude_id is not None:
        query = query.filter(RecurringTaskDB.id != exclude_id)
    return db.query(query.exists()).scalar()


def _apply(db: Session, row: RecurringTaskDB, fields: dict[str, Any], *, owner_id: int) -> None:
    if "template_id" in fields:
        template = load_owned_one(
            db, TaskTemplateDB, fields["template_id"], owner_id=owner_id, field="templateId", label="template"
        )
        if _template_taken(db, template.id, owner_id=owner_id, exclude_id=row.id):
            raise Conflict(TEMPLATE_TAKEN)
        row.template = template
    for field in RULE_FIELDS:
        if field in fields:
            setattr(row, field, fields[field])
    if row.start_date is None:
        row.start_date = now_utc()
    if row.next_due_date is None:
        row.next_due_date = row.start_date
    if row.end_date is not None and row.end_date < row.start_date:
        message = "End date must be on or after the start date"
        raise BadRequest(message, errors={"endDate": [message]})


def create_schedule(db: Session, data, *, owner_id: int) -> RecurringTaskDB:
    row = RecurringTaskDB(user_id=owner_id, generated_count=0)
    _apply(db, row, data.model_dump(), owner_id=owner_id)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def replace_schedule(db: Session, schedule_id: int, data, *, owner_id: int) -> RecurringTaskDB:
    """PUT: every rule field is replaced; an omitted nextDueDate restarts at startDate."""
    row = get_schedule(db, schedule_id, owner_id=owner_id)
    fields = data.model_dump()
    fields["start_date"] = fields["start_date"] or now_utc()
    fields["next_due_date"] = fields["next_due_date"] or fields["start_date"]
    _apply(db, row, fields, owner_id=owner_id)
    row.updated_at = now_utc()
    db.commit()
    db.refresh(row)
    return row


def update_schedule(db: Session, schedule_id: int, data, *, owner_id: int) -> RecurringTaskDB:
    row = get_schedule(db, schedule_id, owner_id=owner_id)
    fields = data.model_dump(exclude_unset=True)
    for required in ("template_id", "frequency", "interval", "next_due_date", "start_date"):
        if required in fields and fields[required] is None:
            raise BadRequest("Validation error", errors={required: [f"{required} cannot be null"]})
    _apply(db, row, fields, owner_id=owner_id)
    row.updated_at = now_utc()
    db.commit()
    db.refresh(row)
    return row


def delete_schedule(db: Session, schedule_id: int, *, owner_id: int) -> None:
    """Stop a schedule; tasks it already generated are kept."""
    row = get_schedule(db, schedule_id, owner_id=owner_id)
    db.delete(row)
    db.commit()


def advance(row: RecurringTaskDB) -> datetime:
    return next_occurrence(
        row.next_due_date,
        row.frequency,
        row.interval,
        row.days_of_week,
        row.day_of_month,
        row.month_of_year,
    )


def generate_tasks(
    db: Session,
    *,
    owner_id: int,
    ids: Sequence[int] | None = None,
    now: datetime | None = None,
) -> list[TaskDB]:
    """Create the next task of each selected schedule in one transaction.

    With `ids` those schedules run whether due or not (ids of other users are
    ignored); without, every schedule whose next due date has arrived runs.
    """
    now = now or now_utc()
    query = owned_query(db, RecurringTaskDB, owner_id=owner_id)
    if ids is not None:
        query = query.filter(RecurringTaskDB.id.in_(list(ids)))
    else:
        query = query.filter(RecurringTaskDB.next_due_date <= now)
    schedules = query.order_by(RecurringTaskDB.next_due_date.asc(), RecurringTaskDB.id.asc()).all()

    created: list[TaskDB] = []
    for schedule in schedules:
        if is_finished(schedule):
            continue
        template = schedule.template
        fields = {**task_fields(template), "due_date": schedule.next_due_date}
        task = task_store.add_task(
            db,
            fields,
            owner_id=owner_id,
            source={
                "source": "recurring",
                "recurring_task_id": schedule.id,
                "template_id": template.id,
            },
            recurring_task=schedule,
        )
        schedule.next_due_date = advance(schedule)
        schedule.generated_count += 1
        schedule.last_generated_date = now
        created.append(task)
    db.commit()
    for task in created:
        db.refresh(task)
    return created
