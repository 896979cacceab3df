# PURPOSE: password-reset token lifecycle.
# - One live token per email; a new request replaces older ones.
# - Tokens are single use; expired ones are deleted when looked up.

import secrets
from datetime import timedelta

from sqlalchemy.orm import Session

from ..api.errors import BadRequest, NotFound
from ..auth import hash_password
from ..config import settings
from ..db_models import VerificationTokenDB, now_utc
from .users import get_user_by_email

INVALID_TOKEN = "Invalid or expired token"
EXPIRED_TOKEN = "Token has expired. Please request a new password reset"


def create_reset_token(db: Session, email: str) -> str | None:
    """Issue a token for a known email; None when no such user exists."""
    user = get_user_by_email(db, email)
    if user is None:
        return None
    db.query(VerificationTokenDB).filter(VerificationTokenDB.identifier == user.email).delete(
        synchronize_session=False
    )
    token = secrets.token_hex(20)
    db.add(
        VerificationTokenDB(
            identifier=user.email,
            token=token,
            expires=now_utc() + timedelta(minutes=settings.RESET_TOKEN_TTL_MIN),
        )
    )
    db.commit()
    return token


def reset_password(db: Session, token: str, password: str) -> None:
    row = db.get(VerificationTokenDB, token)
    if row is None:
        raise BadRequest(INVALID_TOKEN)
    if row.expires < now_utc():
        db.delete(row)
        db.commit()
        raise BadRequest(EXPIRED_TOKEN)
    user = get_user_by_email(db, row.identifier)
    if user is None:
        db.delete(row)
        db.commit()
        raise NotFound("User not found")
    user.password_hash = hash_password(password)
    db.delete(row)
    db.commit()
