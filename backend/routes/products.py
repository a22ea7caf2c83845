# backend/routes/products.py
from datetime import date
from typing import Optional, List

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, ROLE_ADMIN, ROLE_WAREHOUSE
from schemas import product as product_schemas
from services import catalog
from utils.tokenJWT import get_current_user, role_required

router = APIRouter(tags=["Products"])

# Product, category and inventory mutation
can_manage_stock = role_required(ROLE_WAREHOUSE, ROLE_ADMIN)


def _product_form(
    name: str = Form(...),
    category_id: int = Form(...),
    purchase_price: float = Form(...),
    selling_price: float = Form(...),
    stock: int = Form(...),
    unit: str = Form(...),
    code: Optional[str] = Form(None),
    min_stock: int = Form(0),
    description: Optional[str] = Form(None),
    entry_date: Optional[date] = Form(None),
    expired_date: Optional[date] = Form(None),
    is_active: bool = Form(True),
) -> product_schemas.ProductData:
    """Multipart fields -> validated ProductData (field errors come back as a normal 422)."""
    try:
        return product_schemas.ProductData(
            code=code, name=name, category_id=category_id, description=description,
            purchase_price=purchase_price, selling_price=selling_price, stock=stock,
            min_stock=min_stock, unit=unit, entry_date=entry_date, expired_date=expired_date,
            is_active=is_active,
        )
    except ValidationError as e:
        raise RequestValidationError([{k: v for k, v in err.items() if k != "ctx"} for err in e.errors()])


def _upload(image: Optional[UploadFile]) -> Optional[UploadFile]:
    # Browsers send an empty file part when nothing was picked
    return image if image is not None and image.filename else None


# =========================
# LIST
# =========================
@router.get("/products", response_model=product_schemas.ProductListPage)
def list_products(
    search: Optional[str] = Query(None),
    category: Optional[int] = Query(None, description="Category id"),
    stock_status: Optional[product_schemas.StockStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return catalog.list_products(
        db, search=search, category_id=category, stock_status=stock_status,
        page=page, page_size=page_size,
    )


# =========================
# AUTOCOMPLETE & CODES
# =========================
@router.get("/products/search", response_model=List[product_schemas.ProductSearchItem])
def search_products(
    term: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return catalog.search_products(db, term)


@router.get("/products/last-code", response_model=product_schemas.LastCodeResponse)
def last_code(
    category_id: int = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return catalog.code_preview(db, category_id)


@router.get("/products/generate-codes", response_model=product_schemas.GeneratedCodes)
def generate_codes(
    category_id: int = Query(...),
    count: int = Query(1),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_stock),
):
    return catalog.bulk_codes(db, category_id, count)


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/products/{product_id}", response_model=product_schemas.ProductOut)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return catalog.get_product(db, product_id)


@router.post("/products", response_model=product_schemas.ProductOut, status_code=201)
def create_product(
    data: product_schemas.ProductData = Depends(_product_form),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_stock),
):
    return catalog.create_product(db, data, _upload(image))


@router.put("/products/{product_id}", response_model=product_schemas.ProductOut)
def update_product(
    product_id: int,
    data: product_schemas.ProductData = Depends(_product_form),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_stock),
):
    return catalog.update_product(db, product_id, data, _upload(image))


@router.put("/products/{product_id}/toggle-status", response_model=product_schemas.ProductOut)
def toggle_status(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_stock),
):
    return catalog.toggle_status(db, product_id)


@router.delete("/products/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_stock),
):
    catalog.delete_product(db, product_id)
    return None
