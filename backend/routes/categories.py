# backend/routes/categories.py
from typing import Optional, Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, ROLE_ADMIN, ROLE_WAREHOUSE
from schemas import category as category_schemas
from services import categories
from utils.tokenJWT import get_current_user, role_required

router = APIRouter(prefix="/categories", tags=["Categories"])

can_manage = role_required(ROLE_WAREHOUSE, ROLE_ADMIN)


@router.get("", response_model=category_schemas.CategoryListPage)
def list_categories(
    search: Optional[str] = Query(None),
    trashed: Optional[Literal["with", "only"]] = Query(None, description="Include soft-deleted categories"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return categories.list_categories(db, search=search, trashed=trashed, page=page, page_size=page_size)


@router.post("", response_model=category_schemas.CategoryOut, status_code=201)
def create_category(
    payload: category_schemas.CategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    return categories.create_category(db, payload)


@router.patch("/{category_id}", response_model=category_schemas.CategoryOut)
def update_category(
    category_id: int,
    payload: category_schemas.CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    return categories.update_category(db, category_id, payload)


@router.delete("/{category_id}", response_model=category_schemas.CategoryOut)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    return categories.delete_category(db, category_id)


@router.patch("/{category_id}/restore", response_model=category_schemas.CategoryOut)
def restore_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    return categories.restore_category(db, category_id)
