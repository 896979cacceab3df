# PURPOSE: activity stats and the change summary behind GET /user/activity.
# - The four task counts come from one aggregate SELECT (one snapshot).
# - "Today" is local midnight-to-midnight in APP_TIMEZONE; storage is naive UTC.

from datetime import UTC, datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy import and_, case, func, select
from sqlalchemy.orm import Session

from ..config import settings
from ..db_models import TaskDB, TaskHistoryDB, as_utc_naive, now_utc

CHANGE_TYPES: tuple[str, ...] = ("CREATED", "UPDATED", "COMPLETED", "DELETED")
RECENT_LIMIT = 10


def completion_rate(completed: int, total: int) -> int:
    """Percentage of completed tasks, rounded to the nearest integer (half up)."""
    if total <= 0:
        return 0
    return (completed * 200 + total) // (2 * total)


def today_window(now: datetime, tz_name: str) -> tuple[datetime, datetime]:
    """[start, end) of the local day containing `now` (naive UTC in and out)."""
    # UTC needs no tz database
    tz = UTC if tz_name.upper() == "UTC" else ZoneInfo(tz_name)
    local_day = now.replace(tzinfo=UTC).astimezone(tz).date()
    start = datetime.combine(local_day, time.min, tzinfo=tz)
    end = datetime.combine(local_day + timedelta(days=1), time.min, tzinfo=tz)
    return as_utc_naive(start), as_utc_naive(end)


def _count_where(condition) -> Any:
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def task_stats(
    db: Session, *, owner_id: int, now: datetime | None = None, tz_name: str | None = None
) -> dict[str, int]:
    now = now or now_utc()
    start, end = today_window(now, tz_name or settings.APP_TIMEZONE)
    active = TaskDB.completed_at.is_(None)
    stmt = select(
        func.count(TaskDB.id),
        _count_where(TaskDB.completed_at.is_not(None)),
        _count_where(and_(active, TaskDB.due_date < now)),
        _count_where(and_(active, TaskDB.due_date >= start, TaskDB.due_date < end)),
    ).where(TaskDB.user_id == owner_id)
    total, completed, overdue, due_today = db.execute(stmt).one()
    return {
        "total_tasks": int(total),
        "completed_tasks": int(completed),
        "overdue_tasks": int(overdue),
        "tasks_due_today": int(due_today),
        "completion_rate": completion_rate(int(completed), int(total)),
    }


def activity_summary(
    db: Session, *, owner_id: int, days: int, now: datetime | None = None
) -> dict[str, Any]:
    """Journal entries from the last `days` days, bucketed per UTC day."""
    since = (now or now_utc()) - timedelta(days=days)
    entries = (
        db.query(TaskHistoryDB)
        .filter(TaskHistoryDB.user_id == owner_id, TaskHistoryDB.created_at >= since)
        .order_by(TaskHistoryDB.created_at.desc(), TaskHistoryDB.id.desc())
        .all()
    )
    by_day: dict[str, dict[str, int]] = {}
    for entry in entries:
        day = by_day.setdefault(
            entry.created_at.date().isoformat(), dict.fromkeys(CHANGE_TYPES, 0)
        )
        day[entry.change_type] = day.get(entry.change_type, 0) + 1
    return {
        "total_changes": len(entries),
        "summary_by_day": by_day,
        "recent_activity": [
            {
                "id": entry.id,
                "task_id": entry.task_id,
                "task_title": entry.task_title,
                "change_type": entry.change_type,
                "timestamp": entry.created_at,
                "changes": entry.change_data,
            }
            for entry in entries[:RECENT_LIMIT]
        ],
    }
