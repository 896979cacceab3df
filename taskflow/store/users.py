# PURPOSE: accounts: signup, credentials check, OAuth sign-in, profile,
# password change, settings, account deletion.
# - New users (either path) get UserSettings and five starter categories.

import logging
from functools import lru_cache
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..api.errors import BadRequest, Conflict
from ..auth import hash_password, verify_password
from ..db_models import (
    AccountDB,
    CategoryDB,
    UserDB,
    UserSettingsDB,
    VerificationTokenDB,
)
from .templates import default_templates

logger = logging.getLogger("taskflow.users")

DEFAULT_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("Work", "#4A90E2"),
    ("Personal", "#50E3C2"),
    ("Health", "#FF5A5F"),
    ("Shopping", "#FFB400"),
    ("Learning", "#8E44AD"),
)

EMAIL_TAKEN = "User with this email already exists"
# JSON settings may be cleared with null; the rest keep their value
NULLABLE_SETTINGS = frozenset({"preferred_working_hours", "notification_settings"})


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> UserDB | None:
    return (
        db.query(UserDB)
        .filter(func.lower(UserDB.email) == normalize_email(email))
        .one_or_none()
    )


def add_user_defaults(user: UserDB) -> None:
    """Attach default settings, starter categories and templates (caller commits)."""
    if user.settings is None:
        user.settings = UserSettingsDB()
    if not user.categories:
        user.categories = [CategoryDB(name=name, color=color) for name, color in DEFAULT_CATEGORIES]
    if not user.templates:
        user.templates = default_templates()


def _commit_new_user(db: Session, user: UserDB) -> UserDB:
    try:
        db.commit()
    except IntegrityError as err:
        # lost a race against a concurrent signup with the same email
        db.rollback()
        raise Conflict(EMAIL_TAKEN) from err
    db.refresh(user)
    return user


def signup(db: Session, *, email: str, password: str, name: str | None = None) -> UserDB:
    if get_user_by_email(db, email) is not None:
        raise Conflict(EMAIL_TAKEN)
    user = UserDB(name=name, email=normalize_email(email), password_hash=hash_password(password))
    add_user_defaults(user)
    db.add(user)
    return _commit_new_user(db, user)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("timing-equalizer")


def authenticate(db: Session, email: str, password: str) -> UserDB | None:
    """Return the user when the credentials match, else None.

    Unknown emails and OAuth-only accounts (no password hash) still pay for
    one bcrypt check, so every failure takes about the same time.
    """
    user = get_user_by_email(db, email)
    if user is None or not user.password_hash:
        verify_password(password, _dummy_hash())
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def oauth_sign_in(db: Session, provider: str, profile) -> tuple[UserDB, bool]:
    """Resolve an OAuth profile to a user; returns (user, created)."""
    account = (
        db.query(AccountDB)
        .filter(
            AccountDB.provider == provider,
            AccountDB.provider_account_id == profile.provider_account_id,
        )
        .one_or_none()
    )
    created = False
    if account is not None:
        user = account.user
    else:
        user = get_user_by_email(db, profile.email)
        if user is None:
            user = UserDB(
                name=profile.name, email=normalize_email(profile.email), image=profile.image
            )
            db.add(user)
            created = True
        user.accounts.append(
            AccountDB(provider=provider, provider_account_id=profile.provider_account_id)
        )
    if user.image is None and profile.image:
        user.image = profile.image
    if created:
        add_user_defaults(user)
    else:
        # returning users created before settings existed get them now
        _ensure_settings(user)
    return _commit_new_user(db, user), created


def _ensure_settings(user: UserDB) -> None:
    if user.settings is None:
        user.settings = UserSettingsDB()


def update_profile(db: Session, user: UserDB, fields: dict[str, Any]) -> UserDB:
    if fields.get("email"):
        email = normalize_email(fields["email"])
        other = get_user_by_email(db, email)
        if other is not None and other.id != user.id:
            raise Conflict("Email is already in use")
        user.email = email
    if "name" in fields:
        user.name = fields["name"]
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: UserDB, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise BadRequest(
            "Current password is incorrect",
            errors={"currentPassword": ["Current password is incorrect"]},
        )
    user.password_hash = hash_password(new_password)
    db.commit()


def get_settings(db: Session, user: UserDB) -> UserSettingsDB:
    if user.settings is None:
        _ensure_settings(user)
        db.commit()
        db.refresh(user)
    return user.settings


def update_settings(db: Session, user: UserDB, fields: dict[str, Any]) -> UserSettingsDB:
    row = get_settings(db, user)
    for field, value in fields.items():
        if value is None and field not in NULLABLE_SETTINGS:
            continue
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return row


def delete_user(db: Session, user: UserDB) -> None:
    """Remove the user and, transitively, everything they own."""
    user_id = user.id
    db.query(VerificationTokenDB).filter(VerificationTokenDB.identifier == user.email).delete(
        synchronize_session=False
    )
    db.delete(user)
    db.commit()
    logger.info("user_deleted user_id=%s", user_id)
