# backend/routes/suppliers.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, ROLE_ADMIN, ROLE_OWNER, ROLE_WAREHOUSE
from schemas import supplier as supplier_schemas
from services import suppliers
from utils.tokenJWT import role_required

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])

can_manage = role_required(ROLE_OWNER, ROLE_WAREHOUSE, ROLE_ADMIN)


@router.get("", response_model=supplier_schemas.SupplierListPage)
def list_suppliers(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    return suppliers.list_suppliers(db, search=search, page=page, page_size=page_size)


@router.post("", response_model=supplier_schemas.SupplierOut, status_code=201)
def create_supplier(
    payload: supplier_schemas.SupplierCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    return suppliers.create_supplier(db, payload)


@router.get("/{supplier_id}", response_model=supplier_schemas.SupplierOut)
def get_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    return suppliers.get_supplier(db, supplier_id)


@router.put("/{supplier_id}", response_model=supplier_schemas.SupplierOut)
def update_supplier(
    supplier_id: int,
    payload: supplier_schemas.SupplierUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    return suppliers.update_supplier(db, supplier_id, payload)


@router.delete("/{supplier_id}", status_code=204)
def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    suppliers.delete_supplier(db, supplier_id)
    return None
