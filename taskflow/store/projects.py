# PURPOSE: project CRUD.
# - Deleting a project that still owns tasks is refused unless cascade is
#   requested; with cascade the tasks go first, then the project, one commit.

from typing import Any

from sqlalchemy.orm import Session

from ..api.errors import BadRequest, Conflict
from ..db_models import ProjectDB, TaskDB
from .common import get_owned_or_raise, name_taken
from .tasks import delete_rows

NAME_CONFLICT = "A project with this name already exists"


def list_projects(db: Session, *, owner_id: int, status: str | None = None) -> list[ProjectDB]:
    query = db.query(ProjectDB).filter(ProjectDB.user_id == owner_id)
    if status:
        query = query.filter(ProjectDB.status == status)
    return query.order_by(ProjectDB.created_at.desc(), ProjectDB.id.desc()).all()


def create_project(db: Session, data, *, owner_id: int) -> ProjectDB:
    fields = data.model_dump()
    if name_taken(db, ProjectDB, fields["name"], owner_id=owner_id):
        raise Conflict(NAME_CONFLICT)
    row = ProjectDB(user_id=owner_id, **fields)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_project(db: Session, project_id: int, *, owner_id: int) -> ProjectDB:
    return get_owned_or_raise(db, ProjectDB, project_id, owner_id=owner_id, label="Project")


def replace_project(db: Session, project_id: int, data, *, owner_id: int) -> ProjectDB:
    return _update(db, project_id, data.model_dump(), owner_id=owner_id)


def update_project(db: Session, project_id: int, data, *, owner_id: int) -> ProjectDB:
    fields = data.model_dump(exclude_unset=True)
    for required in ("name", "status"):
        if required in fields and fields[required] is None:
            raise BadRequest("Validation error", errors={required: [f"{required} cannot be null"]})
    return _update(db, project_id, fields, owner_id=owner_id)


def _update(db: Session, project_id: int, fields: dict[str, Any], *, owner_id: int) -> ProjectDB:
    row = get_project(db, project_id, owner_id=owner_id)
    if "name" in fields and name_taken(
        db, ProjectDB, fields["name"], owner_id=owner_id, exclude_id=row.id
    ):
        raise Conflict(NAME_CONFLICT)
    for field, value in fields.items():
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return row


def delete_project(db: Session, project_id: int, *, owner_id: int, cascade: bool = False) -> int:
    """Delete a project; returns how many tasks (subtasks included) went with it."""
    row = get_project(db, project_id, owner_id=owner_id)
    tasks = db.query(TaskDB).filter(TaskDB.project_id == row.id).all()
    if tasks and not cascade:
        raise BadRequest(
            f"Cannot delete project with {len(tasks)} associated tasks. "
            "Set cascade=true to delete tasks as well."
        )
    # subtasks go with their parent whether or not they sit in the project
    deleted = delete_rows(db, tasks, owner_id=owner_id)
    db.flush()
    db.delete(row)
    db.commit()
    return deleted
