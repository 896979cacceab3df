# PURPOSE: task change journal (CREATED / UPDATED / COMPLETED / DELETED).

from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from ..db_models import TaskDB, TaskHistoryDB
from .common import get_owned_or_raise

# Columns that are journaled; relation sets are tracked as id lists
TRACKED_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "priority",
    "emotion",
    "due_date",
    "completed_at",
    "estimated_duration",
    "actual_duration",
    "goal_id",
    "project_id",
    "parent_id",
)


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def snapshot(task: TaskDB) -> dict[str, Any]:
    data = {field: _jsonable(getattr(task, field)) for field in TRACKED_FIELDS}
    data["category_ids"] = sorted(c.id for c in task.categories)
    return data


def diff(before: dict[str, Any], after: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return (changes, previous) restricted to keys whose value changed."""
    changed = [k for k in after if before.get(k) != after[k]]
    return {k: after[k] for k in changed}, {k: before.get(k) for k in changed}


def record(
    db: Session,
    *,
    task: TaskDB,
    user_id: int,
    change_type: str,
    change_data: dict[str, Any],
    previous_data: dict[str, Any] | None = None,
    keep_link: bool = True,
) -> TaskHistoryDB:
    """Add a journal row to the session (the caller commits)."""
    entry = TaskHistoryDB(
        task_id=task.id if keep_link else None,
        user_id=user_id,
        task_title=task.title,
        change_type=change_type,
        change_data=change_data,
        previous_data=previous_data,
    )
    db.add(entry)
    return entry


def list_task_history(db: Session, task_id: int, *, owner_id: int) -> list[TaskHistoryDB]:
    """History for one of the user's tasks, newest first."""
    get_owned_or_raise(db, TaskDB, task_id, owner_id=owner_id, label="Task")
    return (
        db.query(TaskHistoryDB)
        .filter(TaskHistoryDB.task_id == task_id)
        .order_by(TaskHistoryDB.created_at.desc(), TaskHistoryDB.id.desc())
        .all()
    )
