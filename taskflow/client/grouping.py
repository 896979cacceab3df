# PURPOSE: derived state for task lists, computed from API task dicts
# (camelCase keys as the API returns them).
# - group_tasks: buckets by category / priority label / due-date bucket
# - subtask_progress: completed vs total direct subtasks

from datetime import UTC, datetime, timedelta
from typing import Any, Literal

GroupBy = Literal["none", "category", "priority", "dueDate"]
GROUP_BY_CHOICES: tuple[str, ...] = ("none", "category", "priority", "dueDate")

ALL_TASKS = "All Tasks"
UNCATEGORIZED = "Uncategorized"
NO_DUE_DATE = "No Due Date"
OVERDUE = "Overdue"
TODAY = "Today"
TOMORROW = "Tomorrow"

PRIORITY_LABELS: dict[str, str] = {
    "NONE": "None",
    "LOW": "Low",
    "MEDIUM": "Medium",
    "HIGH": "High",
    "URGENT": "Urgent",
}


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """ISO string (trailing Z allowed) or datetime -> aware datetime; naive means UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _local_now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now().astimezone()
    # a naive `now` is wall-clock time in the local zone
    return now.astimezone() if now.tzinfo is None else now


def format_day(day: datetime) -> str:
    """Label like "March 5, 2026"."""
    return f"{day:%B} {day.day}, {day.year}"


def priority_label(priority: Any) -> str:
    return PRIORITY_LABELS.get(str(priority).upper(), "None") if priority is not None else "None"


def due_bucket(due: str | datetime | None, now: datetime | None = None) -> str:
    """Bucket name for a due date relative to `now`'s local day."""
    due_at = parse_datetime(due)
    if due_at is None:
        return NO_DUE_DATE
    local_now = _local_now(now)
    due_local = due_at.astimezone(local_now.tzinfo)
    today = local_now.date()
    if due_local.date() < today:
        return OVERDUE
    if due_local.date() == today:
        return TODAY
    if due_local.date() == today + timedelta(days=1):
        return TOMORROW
    return format_day(due_local)


def _group_key(task: dict[str, Any], group_by: str, now: datetime | None) -> str:
    if group_by == "category":
        categories = task.get("categories") or []
        return (categories[0].get("name") if categories else None) or UNCATEGORIZED
    if group_by == "priority":
        return priority_label(task.get("priority"))
    if group_by == "dueDate":
        return due_bucket(task.get("dueDate"), now)
    raise ValueError(f"unknown group_by: {group_by!r}")


def group_tasks(
    tasks: list[dict[str, Any]] | None, group_by: GroupBy = "none", now: datetime | None = None
) -> dict[str, list[dict[str, Any]]]:
    """Partition tasks into named buckets; bucket order follows first appearance."""
    if not isinstance(tasks, list):
        return {ALL_TASKS: []}
    if group_by == "none":
        return {ALL_TASKS: list(tasks)}
    groups: dict[str, list[dict[str, Any]]] = {}
    for task in tasks:
        groups.setdefault(_group_key(task, group_by, now), []).append(task)
    return groups


def subtask_progress(task: dict[str, Any]) -> dict[str, float] | None:
    """{completed, total, percentage} over direct subtasks; None without subtasks."""
    subtasks = task.get("subtasks") or []
    if not subtasks:
        return None
    completed = sum(1 for sub in subtasks if sub.get("completedAt"))
    total = len(subtasks)
    return {"completed": completed, "total": total, "percentage": completed / total * 100}
