# PURPOSE: persistence operations, one module per resource.
# Functions take a Session plus keyword-only `owner_id`, raise taxonomy
# errors (NotFound/Forbidden/BadRequest/Conflict) and commit on success.

from ..db import SessionLocal


def get_db():
    """Yield a SQLAlchemy session (used as a FastAPI dependency)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
