# PURPOSE: goal CRUD. Goals are owned through their project.
# - PUT replaces the task set (omitted taskIds clears it).
# - PATCH replaces the task set only when taskIds/tasks is in the body.

from typing import Any

from sqlalchemy.orm import Session

from ..api.errors import BadRequest, NotFound
from ..db_models import GoalDB, ProjectDB, TaskDB
from .common import get_owned_or_raise, load_owned_many, owned_query


def list_goals(
    db: Session, *, owner_id: int, project_id: int | None = None, search: str | None = None
) -> list[GoalDB]:
    query = owned_query(db, GoalDB, owner_id=owner_id)
    if project_id is not None:
        query = query.filter(GoalDB.project_id == project_id)
    if search:
        query = query.filter(GoalDB.name.ilike(f"%{search}%"))
    return query.order_by(GoalDB.created_at.desc(), GoalDB.id.desc()).all()


def create_goal(db: Session, data, *, owner_id: int) -> GoalDB:
    project = _target_project(db, data.project_id, owner_id=owner_id)
    tasks = _load_tasks(db, data.task_ids, owner_id=owner_id)
    row = GoalDB(name=data.name, description=data.description, project=project)
    row.tasks = tasks
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_goal(db: Session, goal_id: int, *, owner_id: int) -> GoalDB:
    return get_owned_or_raise(db, GoalDB, goal_id, owner_id=owner_id, label="Goal")


def replace_goal(db: Session, goal_id: int, data, *, owner_id: int) -> GoalDB:
    return _update(db, goal_id, data.model_dump(), owner_id=owner_id)


def update_goal(db: Session, goal_id: int, data, *, owner_id: int) -> GoalDB:
    fields = data.model_dump(exclude_unset=True)
    for required in ("name", "project_id"):
        if required in fields and fields[required] is None:
            raise BadRequest("Validation error", errors={required: [f"{required} cannot be null"]})
    if fields.get("task_ids", ()) is None:
        # explicit null reads as "leave the set alone", same as omitting it
        del fields["task_ids"]
    return _update(db, goal_id, fields, owner_id=owner_id)


def _update(db: Session, goal_id: int, fields: dict[str, Any], *, owner_id: int) -> GoalDB:
    row = get_goal(db, goal_id, owner_id=owner_id)
    # resolve everything before touching the row: a bad id applies nothing
    project = None
    if "project_id" in fields and fields["project_id"] != row.project_id:
        project = _target_project(db, fields["project_id"], owner_id=owner_id)
    tasks = None
    if "task_ids" in fields:
        tasks = _load_tasks(db, fields["task_ids"], owner_id=owner_id)

    for field in ("name", "description"):
        if field in fields:
            setattr(row, field, fields[field])
    if project is not None:
        row.project = project
    if tasks is not None:
        row.tasks = tasks
    db.commit()
    db.refresh(row)
    return row


def delete_goal(db: Session, goal_id: int, *, owner_id: int) -> None:
    """Delete a goal; its tasks stay, unlinked."""
    row = get_goal(db, goal_id, owner_id=owner_id)
    db.delete(row)
    db.commit()


def _target_project(db: Session, project_id: int, *, owner_id: int) -> ProjectDB:
    """The project a goal hangs off; another user's project reads as missing."""
    project = (
        owned_query(db, ProjectDB, owner_id=owner_id).filter(ProjectDB.id == project_id).one_or_none()
    )
    if project is None:
        raise NotFound(f"Project with ID {project_id} not found or does not belong to you")
    return project


def _load_tasks(db: Session, ids: list[int], *, owner_id: int) -> list[TaskDB]:
    return load_owned_many(db, TaskDB, ids, owner_id=owner_id, field="taskIds", label="task")
