# PURPOSE: the signed-in user's own resources:
#   /user/activity, /user (DELETE), /user/update-profile,
#   /user/change-password, /user/settings

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.deps import parse_days
from ..api.responses import Envelope, envelope
from ..auth import get_current_user
from ..db_models import UserDB
from ..models import (
    ActivityResponse,
    ChangePasswordRequest,
    MessageOut,
    ProfileUpdate,
    SettingsData,
    SettingsPut,
    SettingsUpdate,
    UserData,
)
from ..store import activity
from ..store import get_db
from ..store import users as store

router = APIRouter(prefix="/user", tags=["user"])
logger = logging.getLogger("taskflow.user")


@router.get("/activity", response_model=ActivityResponse)
def get_activity(
    days: int = Depends(parse_days),
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    # not enveloped: the dashboard reads {activity, stats} directly
    return {
        "activity": activity.activity_summary(db, owner_id=user.id, days=days),
        "stats": activity.task_stats(db, owner_id=user.id),
    }


@router.delete("", response_model=Envelope[MessageOut])
def delete_account(db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)):
    store.delete_user(db, user)
    return envelope({"message": "Account deleted successfully"})


@router.put("/update-profile", response_model=Envelope[UserData])
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    updated = store.update_profile(db, user, payload.model_dump(exclude_unset=True))
    logger.info("profile_updated user_id=%s", user.id)
    return envelope({"user": updated})


@router.put("/change-password", response_model=Envelope[MessageOut])
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    store.change_password(db, user, payload.current_password, payload.new_password)
    logger.info("password_changed user_id=%s", user.id)
    return envelope({"message": "Password updated successfully"})


@router.get("/settings", response_model=Envelope[SettingsData])
def get_settings(db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)):
    return envelope({"settings": store.get_settings(db, user)})


@router.put("/settings", response_model=Envelope[SettingsData])
def put_settings(
    payload: SettingsPut,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return envelope({"settings": store.update_settings(db, user, payload.model_dump())})


@router.patch("/settings", response_model=Envelope[SettingsData])
def patch_settings(
    payload: SettingsUpdate,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return envelope(
        {"settings": store.update_settings(db, user, payload.model_dump(exclude_unset=True))}
    )
