# PURPOSE: /categories CRUD

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..api.responses import Envelope, envelope
from ..auth import get_current_user
from ..db_models import UserDB
from ..models import (
    CategoryCreate,
    CategoryData,
    CategoryList,
    CategoryPut,
    CategoryUpdate,
    MessageOut,
)
from ..store import categories as store
from ..store import get_db

router = APIRouter(prefix="/categories", tags=["categories"])
logger = logging.getLogger("taskflow.categories")


@router.get("", response_model=Envelope[CategoryList])
def list_categories(db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)):
    return envelope({"categories": store.list_categories(db, owner_id=user.id)})


@router.post("", response_model=Envelope[CategoryData], status_code=status.HTTP_201_CREATED)
def create_category(
    item: CategoryCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    category = store.create_category(db, item, owner_id=user.id)
    response.headers["Location"] = f"/api/v1/categories/{category.id}"
    logger.info("category_created category_id=%s user_id=%s", category.id, user.id)
    return envelope({"category": category})


@router.get("/{category_id}", response_model=Envelope[CategoryData])
def get_category(
    category_id: int, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)
):
    return envelope({"category": store.get_category(db, category_id, owner_id=user.id)})


@router.put("/{category_id}", response_model=Envelope[CategoryData])
def put_category(
    category_id: int,
    item: CategoryPut,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return envelope({"category": store.replace_category(db, category_id, item, owner_id=user.id)})


@router.patch("/{category_id}", response_model=Envelope[CategoryData])
def patch_category(
    category_id: int,
    item: CategoryUpdate,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return envelope({"category": store.update_category(db, category_id, item, owner_id=user.id)})


@router.delete("/{category_id}", response_model=Envelope[MessageOut])
def delete_category(
    category_id: int, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)
):
    store.delete_category(db, category_id, owner_id=user.id)
    logger.info("category_deleted category_id=%s user_id=%s", category_id, user.id)
    return envelope({"message": "Category deleted successfully"})
