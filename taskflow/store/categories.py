# PURPOSE: category CRUD; names are unique per user (case-insensitive).

from typing import Any

from sqlalchemy.orm import Session

from ..api.errors import BadRequest, Conflict
from ..db_models import CategoryDB
from .common import get_owned_or_raise, name_taken

NAME_CONFLICT = "A category with this name already exists"


def list_categories(db: Session, *, owner_id: int) -> list[CategoryDB]:
    return (
        db.query(CategoryDB)
        .filter(CategoryDB.user_id == owner_id)
        .order_by(CategoryDB.name.asc(), CategoryDB.id.asc())
        .all()
    )


def create_category(db: Session, data, *, owner_id: int) -> CategoryDB:
    name = data.name.strip()
    if name_taken(db, CategoryDB, name, owner_id=owner_id):
        raise Conflict(NAME_CONFLICT)
    row = CategoryDB(user_id=owner_id, name=name, color=data.color)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_category(db: Session, category_id: int, *, owner_id: int) -> CategoryDB:
    return get_owned_or_raise(db, CategoryDB, category_id, owner_id=owner_id, label="Category")


def replace_category(db: Session, category_id: int, data, *, owner_id: int) -> CategoryDB:
    return _update(db, category_id, data.model_dump(), owner_id=owner_id)


def update_category(db: Session, category_id: int, data, *, owner_id: int) -> CategoryDB:
    fields = data.model_dump(exclude_unset=True)
    for required in ("name", "color"):
        if required in fields and fields[required] is None:
            raise BadRequest("Validation error", errors={required: [f"{required} cannot be null"]})
    return _update(db, category_id, fields, owner_id=owner_id)


def _update(db: Session, category_id: int, fields: dict[str, Any], *, owner_id: int) -> CategoryDB:
    row = get_category(db, category_id, owner_id=owner_id)
    if "name" in fields:
        fields["name"] = fields["name"].strip()
        if name_taken(db, CategoryDB, fields["name"], owner_id=owner_id, exclude_id=row.id):
            raise Conflict(NAME_CONFLICT)
    for field, value in fields.items():
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return row


def delete_category(db: Session, category_id: int, *, owner_id: int) -> None:
    """Delete a category; tasks lose the link but are kept."""
    row = get_category(db, category_id, owner_id=owner_id)
    db.delete(row)
    db.commit()
