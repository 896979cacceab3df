# PURPOSE: password hashing, JWT issuance/decoding, and the per-request user.
# - The token's `sub` is the user id; every request re-loads the user row,
#   nothing about the session is cached server-side.

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from .api.errors import Unauthorized
from .config import settings
from .db_models import UserDB
from .store import get_db

# OAuth2 password flow; auto_error=False so a missing header becomes our 401 envelope
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


# --- Password helpers (bcrypt, no passlib) ---

def hash_password(password: str) -> str:
    """Return a bcrypt hash for the given plain password."""
    if not isinstance(password, str):
        raise TypeError("password must be a string")
    salt = bcrypt.gensalt(rounds=settings.PASSWORD_HASH_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    """Verify a plain password against its bcrypt hash (False for OAuth-only users)."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


# --- JWT helpers ---

def get_access_token_ttl_minutes() -> int:
    """Access token TTL in minutes; falls back to 60 on a non-positive value."""
    minutes = settings.JWT_EXPIRE_MIN
    return minutes if minutes > 0 else 60


def create_access_token(user_id: int, extra: dict[str, Any] | None = None) -> str:
    """Create a signed JWT whose subject is the user id."""
    payload: dict[str, Any] = {**(extra or {}), "sub": str(user_id)}
    expire = datetime.now(UTC) + timedelta(minutes=get_access_token_ttl_minutes())
    payload["exp"] = expire
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_user_id(token: str) -> int:
    """Return the user id carried by a valid token, else raise Unauthorized."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as err:
        raise Unauthorized() from err
    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as err:
        raise Unauthorized() from err


def get_current_user(
    token: str | None = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> UserDB:
    """Decode the bearer token and load the user it names."""
    if not token:
        raise Unauthorized()
    row = db.get(UserDB, decode_user_id(token))
    if row is None:
        # token outlived its user (account deleted)
        raise Unauthorized()
    return row
