from typing import Literal

from fastapi import Depends, Query

from ..models import PRIORITY_ORDER, Priority
from .errors import BadRequest

# Shared order types
OrderBy = Literal["created_at", "updated_at", "priority", "due_date", "title"]
OrderDir = Literal["asc", "desc"]
TaskStatus = Literal["active", "completed"]

ORDER_BY_CHOICES: tuple[str, ...] = ("created_at", "updated_at", "priority", "due_date", "title")

DAYS_DEFAULT = 7
DAYS_MAX = 90


def _invalid(field: str, message: str) -> BadRequest:
    return BadRequest(message, errors={field: [message]})


def parse_days(days: str | None = Query(None)) -> int:
    if days is None or days == "":
        return DAYS_DEFAULT
    message = f"Invalid days parameter. Must be a number between 1 and {DAYS_MAX}."
    try:
        value = int(days)
    except ValueError as err:
        raise _invalid("days", message) from err
    if not 1 <= value <= DAYS_MAX:
        raise _invalid("days", message)
    return value


def parse_cascade(cascade: str | None = Query(None)) -> bool:
    """Only the exact literal `true` turns cascading on."""
    return cascade == "true"


def parse_task_status(status: str | None = Query(None)) -> TaskStatus | None:
    if status is None or status == "":
        return None
    if status in ("active", "completed"):
        return status  # type: ignore[return-value]
    raise _invalid("status", "status must be one of: active, completed")


def parse_priority(priority: str | None = Query(None)) -> Priority | None:
    """Accept a priority name (any case) or its ordinal 0..4."""
    if priority is None or priority == "":
        return None
    if priority.isdigit() and int(priority) < len(PRIORITY_ORDER):
        return PRIORITY_ORDER[int(priority)]  # type: ignore[return-value]
    if priority.upper() in PRIORITY_ORDER:
        return priority.upper()  # type: ignore[return-value]
    raise _invalid("priority", "priority must be one of: " + ", ".join(PRIORITY_ORDER))


def parse_order_by(order_by: str | None = Query(None)) -> OrderBy:
    if not order_by:
        return "created_at"
    if order_by in ORDER_BY_CHOICES:
        return order_by  # type: ignore[return-value]
    raise _invalid("order_by", "order_by must be one of: " + ", ".join(ORDER_BY_CHOICES))


def parse_order_dir(
    order_dir: str | None = Query(None),
    order_by: OrderBy = Depends(parse_order_by),  # noqa: B008 (FastAPI Depends)
) -> OrderDir:
    if not order_dir:
        # alphabetical lists read naturally ascending, everything else newest/highest first
        return "asc" if order_by == "title" else "desc"
    if order_dir in ("asc", "desc"):
        return order_dir  # type: ignore[return-value]
    raise _invalid("order_dir", "order_dir must be 'asc' or 'desc'")


def parse_preview(preview: str | None = Query(None)) -> bool:
    return preview == "true"
