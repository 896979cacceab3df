# PURPOSE: task templates; reusable task blueprints with an optional
# suggested recurrence. Names are unique per user (case-insensitive).

from typing import Any

from sqlalchemy.orm import Session, selectinload

from ..api.errors import BadRequest, Conflict
from ..db_models import CategoryDB, TaskDB, TaskTemplateDB
from ..models import RecurrenceRule
from . import tasks as task_store
from .common import get_owned_or_raise, load_owned_many, name_taken

NAME_CONFLICT = "A template with this name already exists"
SCALAR_FIELDS: tuple[str, ...] = (
    "name",
    "description",
    "priority",
    "emotion",
    "estimated_duration",
    "is_recurring",
    "recurrence",
)

# Starter set attached to every new account
DEFAULT_TEMPLATES: tuple[dict[str, Any], ...] = (
    {
        "name": "Quick Task",
        "description": "A simple task that can be completed quickly",
        "priority": "MEDIUM",
        "estimated_duration": 15,
        "emotion": "NEUTRAL",
    },
    {
        "name": "Work Meeting",
        "description": "Prepare agenda and notes for team meeting",
        "priority": "HIGH",
        "estimated_duration": 60,
        "emotion": "NEUTRAL",
        "recurrence": {"frequency": "WEEKLY", "interval": 1, "daysOfWeek": [1]},
    },
    {
        "name": "Workout Session",
        "description": "Regular exercise routine for fitness goals",
        "priority": "MEDIUM",
        "estimated_duration": 45,
        "emotion": "EXCITED",
        "recurrence": {"frequency": "DAILY", "interval": 1},
    },
    {
        "name": "Study Session",
        "description": "Focused learning time for professional development",
        "priority": "HIGH",
        "estimated_duration": 90,
        "emotion": "NEUTRAL",
    },
    {
        "name": "Weekly Review",
        "description": "Review progress, update goals, and plan for next week",
        "priority": "HIGH",
        "estimated_duration": 30,
        "emotion": "NEUTRAL",
        "recurrence": {"frequency": "WEEKLY", "interval": 1, "daysOfWeek": [5]},
    },
    {
        "name": "Pay Bills",
        "description": "Monthly payment of recurring bills and financial review",
        "priority": "HIGH",
        "estimated_duration": 30,
        "emotion": "ANXIOUS",
        "recurrence": {"frequency": "MONTHLY", "interval": 1, "dayOfMonth": 1},
    },
    {
        "name": "Project Deadline",
        "description": "Final review and submission of project deliverables",
        "priority": "HIGH",
        "estimated_duration": 120,
        "emotion": "ANXIOUS",
    },
    {
        "name": "Family Call",
        "description": "Regular catch-up with family members",
        "priority": "MEDIUM",
        "estimated_duration": 45,
        "emotion": "CONFIDENT",
        "recurrence": {"frequency": "WEEKLY", "interval": 1, "daysOfWeek": [6]},
    },
)


def default_templates() -> list[TaskTemplateDB]:
    return [
        TaskTemplateDB(is_recurring="recurrence" in spec, **spec) for spec in DEFAULT_TEMPLATES
    ]


def _rule(value: dict[str, Any] | None) -> dict[str, Any] | None:
    """Stored form of a recurrence rule: camelCase keys, unset parts dropped."""
    if value is None:
        return None
    return RecurrenceRule.model_validate(value).model_dump(by_alias=True, exclude_none=True)


def list_templates(db: Session, *, owner_id: int) -> list[TaskTemplateDB]:
    return (
        db.query(TaskTemplateDB)
        .options(selectinload(TaskTemplateDB.categories))
        .filter(TaskTemplateDB.user_id == owner_id)
        .order_by(TaskTemplateDB.name.asc(), TaskTemplateDB.id.asc())
        .all()
    )


def get_template(db: Session, template_id: int, *, owner_id: int) -> TaskTemplateDB:
    return get_owned_or_raise(db, TaskTemplateDB, template_id, owner_id=owner_id, label="Template")


def create_template(db: Session, data, *, owner_id: int) -> TaskTemplateDB:
    fields = data.model_dump()
    row = TaskTemplateDB(user_id=owner_id)
    _apply(db, row, fields, owner_id=owner_id)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def replace_template(db: Session, template_id: int, data, *, owner_id: int) -> TaskTemplateDB:
    return _update(db, template_id, data.model_dump(), owner_id=owner_id)


def update_template(db: Session, template_id: int, data, *, owner_id: int) -> TaskTemplateDB:
    fields = data.model_dump(exclude_unset=True)
    if "name" in fields and fields["name"] is None:
        raise BadRequest("Validation error", errors={"name": ["Name cannot be null"]})
    if "priority" in fields and fields["priority"] is None:
        fields["priority"] = "NONE"
    if "is_recurring" in fields and fields["is_recurring"] is None:
        fields["is_recurring"] = False
    return _update(db, template_id, fields, owner_id=owner_id)


def _update(db: Session, template_id: int, fields: dict[str, Any], *, owner_id: int) -> TaskTemplateDB:
    row = get_template(db, template_id, owner_id=owner_id)
    _apply(db, row, fields, owner_id=owner_id)
    db.commit()
    db.refresh(row)
    return row


def _apply(db: Session, row: TaskTemplateDB, fields: dict[str, Any], *, owner_id: int) -> None:
    if "name" in fields:
        fields["name"] = fields["name"].strip()
        if name_taken(db, TaskTemplateDB, fields["name"], owner_id=owner_id, exclude_id=row.id):
            raise Conflict(NAME_CONFLICT)
    categories = None
    if fields.get("category_ids") is not None:
        categories = load_owned_many(
            db, CategoryDB, fields["category_ids"], owner_id=owner_id, field="categoryIds", label="category"
        )
    for field in SCALAR_FIELDS:
        if field in fields:
            value = fields[field]
            setattr(row, field, _rule(value) if field == "recurrence" else value)
    if categories is not None:
        row.categories = categories


def delete_template(db: Session, template_id: int, *, owner_id: int) -> None:
    """Delete a template together with any schedule built on it; tasks are kept."""
    row = get_template(db, template_id, owner_id=owner_id)
    db.delete(row)
    db.commit()


def task_fields(template: TaskTemplateDB) -> dict[str, Any]:
    """Task columns a template fills in."""
    return {
        "title": template.name,
        "description": template.description,
        "priority": template.priority,
        "emotion": template.emotion,
        "estimated_duration": template.estimated_duration,
        "category_ids": template.category_ids,
    }


def instantiate_template(db: Session, template_id: int, data, *, owner_id: int) -> TaskDB:
    """Create one task from a template; body values override the template's."""
    template = get_template(db, template_id, owner_id=owner_id)
    fields = {**task_fields(template), **data.model_dump(exclude_none=True)}
    row = task_store.add_task(
        db, fields, owner_id=owner_id, source={"source": "template", "template_id": template.id}
    )
    db.commit()
    db.refresh(row)
    return row
