# PURPOSE: ownership checks shared by every resource.
# Ownership chains: Task/Category/Project -> user_id, Goal -> project.user_id

from collections.abc import Iterable
from typing import Any, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from ..api.errors import BadRequest, Forbidden, NotFound
from ..db_models import GoalDB, ProjectDB

M = TypeVar("M")


def owner_id_of(row: Any) -> int:
    if isinstance(row, GoalDB):
        return row.project.user_id
    return row.user_id


def get_owned_or_raise(db: Session, model: type[M], obj_id: int, *, owner_id: int, label: str) -> M:
    """Load a row by id; NotFound if absent, Forbidden if another user owns it."""
    row = db.get(model, obj_id)
    if row is None:
        raise NotFound(f"{label} not found")
    if owner_id_of(row) != owner_id:
        raise Forbidden(f"You do not have permission to access this {label.lower()}")
    return row


def owned_query(db: Session, model: type[M], *, owner_id: int) -> Query:
    """Base query restricted to rows the user owns (goals via their project)."""
    if model is GoalDB:
        return db.query(GoalDB).join(ProjectDB, GoalDB.project_id == ProjectDB.id).filter(
            ProjectDB.user_id == owner_id
        )
    return db.query(model).filter(model.user_id == owner_id)  # type: ignore[attr-defined]


def load_owned_many(
    db: Session, model: type[M], ids: Iterable[int], *, owner_id: int, field: str, label: str
) -> list[M]:
    """Resolve client-supplied relation ids; all or nothing.

    Every id must exist and belong to the user, otherwise BadRequest and
    nothing is applied. Duplicates collapse; input order is kept.
    """
    wanted = list(dict.fromkeys(ids))
    if not wanted:
        return []
    rows = owned_query(db, model, owner_id=owner_id).filter(model.id.in_(wanted)).all()  # type: ignore[attr-defined]
    if len(rows) != len(wanted):
        message = f"Some {label} IDs are invalid or don't belong to the user"
        raise BadRequest(message, errors={field: [message]})
    by_id = {row.id: row for row in rows}
    return [by_id[i] for i in wanted]


def load_owned_one(
    db: Session, model: type[M], obj_id: int | None, *, owner_id: int, field: str, label: str
) -> M | None:
    if obj_id is None:
        return None
    return load_owned_many(db, model, [obj_id], owner_id=owner_id, field=field, label=label)[0]


def name_taken(
    db: Session, model: Any, name: str, *, owner_id: int, exclude_id: int | None = None
) -> bool:
    """Case-insensitive name clash among the user's rows of `model`."""
    query = db.query(model.id).filter(
        model.user_id == owner_id, func.lower(model.name) == name.strip().lower()
    )
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    return db.query(query.exists()).scalar()
