# PURPOSE: task CRUD, filters/ordering, bulk ops; every write is journaled.
# - Ordering by priority uses a CASE rank (NONE=0 .. URGENT=4), due_date puts
#   undated tasks last; both with a stable (created_at, id) tail.
# - PUT replaces scalars and the category set; PATCH touches only given keys.

from collections.abc import Iterator, Sequence
from typing import Any

from sqlalchemy import case, or_
from sqlalchemy.orm import Query, Session, selectinload

from ..api.errors import BadRequest
from ..db_models import CategoryDB, GoalDB, ProjectDB, TaskDB, now_utc
from ..models import PRIORITY_ORDER
from . import history
from .common import get_owned_or_raise, load_owned_many, load_owned_one, owned_query

# Scalar columns a client may write
SCALAR_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "priority",
    "emotion",
    "due_date",
    "completed_at",
    "estimated_duration",
    "actual_duration",
)

priority_rank = case(
    *[(TaskDB.priority == name, rank) for rank, name in enumerate(PRIORITY_ORDER)],
    else_=0,
)


# --- Helpers ---------------------------------------------------------------


def _apply_common_filters(
    query: Query,
    *,
    owner_id: int,
    status: str | None = None,
    priority: str | None = None,
    q: str | None = None,
    project_id: int | None = None,
    goal_id: int | None = None,
    parent_id: int | None = None,
) -> Query:
    """Apply shared filters to a TaskDB query."""
    query = query.filter(TaskDB.user_id == owner_id)
    if status == "active":
        query = query.filter(TaskDB.completed_at.is_(None))
    elif status == "completed":
        query = query.filter(TaskDB.completed_at.is_not(None))
    if priority is not None:
        query = query.filter(TaskDB.priority == priority)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(TaskDB.title.ilike(like), TaskDB.description.ilike(like)))
    if project_id is not None:
        query = query.filter(TaskDB.project_id == project_id)
    if goal_id is not None:
        query = query.filter(TaskDB.goal_id == goal_id)
    if parent_id is not None:
        query = query.filter(TaskDB.parent_id == parent_id)
    return query


def _apply_ordering(query: Query, *, order_by: str, order_dir: str) -> Query:
    """Order by an allow-listed key with a deterministic secondary ordering."""
    if order_by == "priority":
        primary: Any = priority_rank
    elif order_by == "due_date":
        # undated tasks sort after dated ones in both directions
        undated_last = case((TaskDB.due_date.is_(None), 1), else_=0)
        query = query.order_by(undated_last.asc())
        primary = TaskDB.due_date
    elif order_by == "title":
        primary = TaskDB.title
    elif order_by == "updated_at":
        primary = TaskDB.updated_at
    else:
        primary = TaskDB.created_at

    if order_dir == "asc":
        return query.order_by(primary.asc(), TaskDB.created_at.asc(), TaskDB.id.asc())
    return query.order_by(primary.desc(), TaskDB.created_at.desc(), TaskDB.id.desc())


def _ensure_not_descendant(task: TaskDB, parent: TaskDB) -> None:
    """Walk up from the new parent; meeting `task` means a cycle."""
    node: TaskDB | None = parent
    while node is not None:
        if node.id == task.id:
            raise BadRequest(
                "A task cannot be nested under itself or one of its subtasks",
                errors={"parentId": ["Invalid parent task"]},
            )
        node = node.parent


def _resolve_links(db: Session, fields: dict[str, Any], *, owner_id: int, task: TaskDB | None) -> dict[str, Any]:
    """Validate goal/project/parent/category ids present in `fields` (all or nothing)."""
    resolved: dict[str, Any] = {}
    if "goal_id" in fields:
        resolved["goal"] = load_owned_one(
            db, GoalDB, fields["goal_id"], owner_id=owner_id, field="goalId", label="goal"
        )
    if "project_id" in fields:
        resolved["project"] = load_owned_one(
            db, ProjectDB, fields["project_id"], owner_id=owner_id, field="projectId", label="project"
        )
    if "parent_id" in fields:
        parent = load_owned_one(
            db, TaskDB, fields["parent_id"], owner_id=owner_id, field="parentId", label="parent task"
        )
        if parent is not None and task is not None:
            _ensure_not_descendant(task, parent)
        resolved["parent"] = parent
    if "category_ids" in fields and fields["category_ids"] is not None:
        resolved["categories"] = load_owned_many(
            db, CategoryDB, fields["category_ids"], owner_id=owner_id, field="categoryIds", label="category"
        )
    return resolved


def _apply(row: TaskDB, fields: dict[str, Any], links: dict[str, Any]) -> None:
    for field in SCALAR_FIELDS:
        if field in fields:
            setattr(row, field, fields[field])
    for rel, value in links.items():
        setattr(row, rel, value)


def _journal_update(db: Session, row: TaskDB, before: dict[str, Any], *, owner_id: int) -> None:
    changes, previous = history.diff(before, history.snapshot(row))
    if not changes:
        return
    completed_now = before.get("completed_at") is None and row.completed_at is not None
    history.record(
        db,
        task=row,
        user_id=owner_id,
        change_type="COMPLETED" if completed_now else "UPDATED",
        change_data=changes,
        previous_data=previous,
    )


# --- CRUD: Tasks -----------------------------------------------------------


def list_tasks(
    db: Session,
    *,
    owner_id: int,
    status: str | None = None,
    priority: str | None = None,
    q: str | None = None,
    project_id: int | None = None,
    goal_id: int | None = None,
    parent_id: int | None = None,
    limit: int = 50,
    offset: int = 0,
    order_by: str = "created_at",
    order_dir: str = "desc",
) -> list[TaskDB]:
    """Return a paginated list of tasks with filters and ordering applied."""
    query = db.query(TaskDB).options(
        selectinload(TaskDB.categories), selectinload(TaskDB.subtasks)
    )
    query = _apply_common_filters(
        query,
        owner_id=owner_id,
        status=status,
        priority=priority,
        q=q,
        project_id=project_id,
        goal_id=goal_id,
        parent_id=parent_id,
    )
    query = _apply_ordering(query, order_by=order_by, order_dir=order_dir)
    if offset:
        query = query.offset(offset)
    if limit:
        query = query.limit(limit)
    return query.all()


def count_tasks(db: Session, *, owner_id: int, **filters: Any) -> int:
    """Return total count for the given filters (no pagination)."""
    query = _apply_common_filters(db.query(TaskDB.id), owner_id=owner_id, **filters)
    return query.count()


def create_task(db: Session, data, *, owner_id: int) -> TaskDB:
    """Create a task (optionally as a subtask) from a TaskCreate schema."""
    row = add_task(db, data.model_dump(), owner_id=owner_id)
    db.commit()
    db.refresh(row)
    return row


def add_task(
    db: Session,
    fields: dict[str, Any],
    *,
    owner_id: int,
    source: dict[str, Any] | None = None,
    **extra: Any,
) -> TaskDB:
    """Validate links, add the task and its CREATED entry; the caller commits.

    `source` is merged into the journal entry (e.g. which schedule made the task);
    `extra` sets columns no client writes directly, such as `recurring_task`.
    """
    links = _resolve_links(db, fields, owner_id=owner_id, task=None)
    row = TaskDB(user_id=owner_id, **extra)
    _apply(row, fields, links)
    db.add(row)
    db.flush()
    history.record(
        db,
        task=row,
        user_id=owner_id,
        change_type="CREATED",
        change_data={**history.snapshot(row), **(source or {})},
    )
    return row


def get_task(db: Session, task_id: int, *, owner_id: int) -> TaskDB:
    return get_owned_or_raise(db, TaskDB, task_id, owner_id=owner_id, label="Task")


def replace_task(db: Session, task_id: int, data, *, owner_id: int) -> TaskDB:
    """Full replace (PUT): omitted optionals reset, category set replaced."""
    row = get_task(db, task_id, owner_id=owner_id)
    fields = data.model_dump()
    return _update(db, row, fields, owner_id=owner_id)


def update_task(db: Session, task_id: int, data, *, owner_id: int) -> TaskDB:
    """Partial update (PATCH): only keys present in the body are touched."""
    row = get_task(db, task_id, owner_id=owner_id)
    fields = data.model_dump(exclude_unset=True)
    if "title" in fields and fields["title"] is None:
        raise BadRequest("Validation error", errors={"title": ["Title cannot be null"]})
    if "priority" in fields and fields["priority"] is None:
        fields["priority"] = "NONE"
    return _update(db, row, fields, owner_id=owner_id)


def _update(db: Session, row: TaskDB, fields: dict[str, Any], *, owner_id: int) -> TaskDB:
    links = _resolve_links(db, fields, owner_id=owner_id, task=row)
    before = history.snapshot(row)
    _apply(row, fields, links)
    row.updated_at = now_utc()
    db.flush()
    _journal_update(db, row, before, owner_id=owner_id)
    db.commit()
    db.refresh(row)
    return row


def delete_task(db: Session, task_id: int, *, owner_id: int) -> None:
    """Delete a task and its subtask tree; the DELETED entry survives it."""
    row = get_task(db, task_id, owner_id=owner_id)
    delete_rows(db, [row], owner_id=owner_id)
    db.commit()


def delete_rows(db: Session, rows: Sequence[TaskDB], *, owner_id: int) -> int:
    """Journal every task in the given subtrees, then delete them; the caller commits.

    Rows nested under another given row go with that row. Returns how many
    tasks were removed, subtasks included.
    """
    chosen = {row.id for row in rows}
    roots = [row for row in rows if not _has_ancestor_in(row, chosen)]
    doomed = [node for root in roots for node in _walk(root)]
    for node in doomed:
        history.record(
            db,
            task=node,
            user_id=owner_id,
            change_type="DELETED",
            change_data={"title": node.title},
            keep_link=False,
        )
    for root in roots:
        db.delete(root)
    return len(doomed)


def _walk(row: TaskDB) -> Iterator[TaskDB]:
    yield row
    for child in row.subtasks:
        yield from _walk(child)


# --- Bulk ops --------------------------------------------------------------


def bulk_delete_tasks(db: Session, ids: Sequence[int], *, owner_id: int) -> int:
    """Delete many owned tasks; ids of other users are ignored."""
    if not ids:
        return 0
    rows = owned_query(db, TaskDB, owner_id=owner_id).filter(TaskDB.id.in_(list(ids))).all()
    delete_rows(db, rows, owner_id=owner_id)
    db.commit()
    return len(rows)


def _has_ancestor_in(row: TaskDB, ids: set[int]) -> bool:
    node = row.parent
    while node is not None:
        if node.id in ids:
            return True
        node = node.parent
    return False


def bulk_complete_tasks(db: Session, ids: Sequence[int], *, owner_id: int) -> int:
    """Mark many owned, still-active tasks completed; returns how many changed."""
    if not ids:
        return 0
    rows = (
        owned_query(db, TaskDB, owner_id=owner_id)
        .filter(TaskDB.id.in_(list(ids)), TaskDB.completed_at.is_(None))
        .all()
    )
    now = now_utc()
    for row in rows:
        row.completed_at = now
        row.updated_at = now
        history.record(
            db,
            task=row,
            user_id=owner_id,
            change_type="COMPLETED",
            change_data={"completed_at": now.isoformat()},
            previous_data={"completed_at": None},
        )
    db.commit()
    return len(rows)
