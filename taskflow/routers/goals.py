# PURPOSE: /goals CRUD (owned through their project)

import logging

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..api.responses import Envelope, envelope
from ..auth import get_current_user
from ..db_models import UserDB
from ..models import GoalCreate, GoalData, GoalList, GoalPut, GoalUpdate, MessageOut
from ..store import get_db
from ..store import goals as store

router = APIRouter(prefix="/goals", tags=["goals"])
logger = logging.getLogger("taskflow.goals")


@router.get("", response_model=Envelope[GoalList])
def list_goals(
    project_id: int | None = Query(None, alias="projectId"),
    search: str | None = Query(None, max_length=191),
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return envelope(
        {"goals": store.list_goals(db, owner_id=user.id, project_id=project_id, search=search)}
    )


@router.post("", response_model=Envelope[GoalData], status_code=status.HTTP_201_CREATED)
def create_goal(
    item: GoalCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    goal = store.create_goal(db, item, owner_id=user.id)
    response.headers["Location"] = f"/api/v1/goals/{goal.id}"
    logger.info("goal_created goal_id=%s user_id=%s", goal.id, user.id)
    return envelope({"goal": goal})


@router.get("/{goal_id}", response_model=Envelope[GoalData])
def get_goal(goal_id: int, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)):
    return envelope({"goal": store.get_goal(db, goal_id, owner_id=user.id)})


@router.put("/{goal_id}", response_model=Envelope[GoalData])
def put_goal(
    goal_id: int,
    item: GoalPut,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return envelope({"goal": store.replace_goal(db, goal_id, item, owner_id=user.id)})


@router.patch("/{goal_id}", response_model=Envelope[GoalData])
def patch_goal(
    goal_id: int,
    item: GoalUpdate,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return envelope({"goal": store.update_goal(db, goal_id, item, owner_id=user.id)})


@router.delete("/{goal_id}", response_model=Envelope[MessageOut])
def delete_goal(goal_id: int, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)):
    store.delete_goal(db, goal_id, owner_id=user.id)
    logger.info("goal_deleted goal_id=%s user_id=%s", goal_id, user.id)
    return envelope({"message": "Goal deleted successfully"})
