# backend/routes/inventory.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User
from schemas.product import ProductListPage
from services import reporting
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.get("/low-stock", response_model=ProductListPage)
def low_stock(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return reporting.low_stock(db, page=page, page_size=page_size)


@router.get("/out-of-stock", response_model=ProductListPage)
def out_of_stock(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return reporting.out_of_stock(db, page=page, page_size=page_size)


@router.get("/expiring", response_model=ProductListPage)
def expiring(
    days: int = Query(settings.EXPIRY_WARNING_DAYS, ge=0, le=365),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return reporting.expiring(db, days, page=page, page_size=page_size)


@router.get("/expired", response_model=ProductListPage)
def expired(
    search: Optional[str] = Query(None),
    category: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return reporting.expired(db, search=search, category_id=category, page=page, page_size=page_size)
