# backend/services/catalog.py
import logging
from typing import Optional

from fastapi import UploadFile
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from config import settings
from models.category import Category
from models.product import Product, IN_STOCK, LOW_STOCK, OUT_OF_STOCK
from models.sale import SaleItem
from schemas.product import ProductData
from services import codes
from services.errors import ConflictError, NotFoundError, ServiceError
from utils.storage import save_image, delete_image

logger = logging.getLogger(__name__)

IMAGE_FOLDER = "products"


def _norm_code(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    c = code.strip().upper()
    return c if c else None


def apply_stock_status_filter(query, status: Optional[str]):
    """Restrict a Product query to one stock bucket (same rules as Product.stock_status)."""
    if status == IN_STOCK:
        return query.filter(Product.stock > Product.min_stock, Product.stock > 0)
    if status == LOW_STOCK:
        return query.filter(Product.stock <= Product.min_stock, Product.stock > 0)
    if status == OUT_OF_STOCK:
        return query.filter(Product.stock <= 0)
    return query


def list_products(db: Session, search: Optional[str] = None, category_id: Optional[int] = None,
                  stock_status: Optional[str] = None, page: int = 1, page_size: int = 10):
    query = db.query(Product).options(joinedload(Product.category))

    if search:
        like = f"%{search}%"
        query = query.filter(or_(Product.name.ilike(like), Product.code.ilike(like)))
    if category_id:
        query = query.filter(Product.category_id == category_id)
    query = apply_stock_status_filter(query, stock_status)

    # Newest first
    query = query.order_by(Product.created_at.desc(), Product.id.desc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).options(joinedload(Product.category)).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def get_category_or_404(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(
        Category.id == category_id, Category.deleted_at.is_(None)
    ).first()
    if not category:
        raise NotFoundError("Category not found")
    return category


def _code_taken(db: Session, code: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Product.id).filter(Product.code == code)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def _commit_product(db: Session, product: Product) -> Product:
    try:
        db.commit()
    except IntegrityError:
        # Another request stored the same code between our check and the insert
        db.rollback()
        raise ConflictError("Product code already exists")
    db.refresh(product)
    return product


def create_product(db: Session, data: ProductData, image: Optional[UploadFile] = None) -> Product:
    category = get_category_or_404(db, data.category_id)

    code = _norm_code(data.code) or codes.next_product_code(db, category)
    if _code_taken(db, code):
        raise ConflictError("Product code already exists")

    stored = save_image(image, IMAGE_FOLDER) if image is not None else None
    product = Product(code=code, image=stored, **data.model_dump(exclude={"code"}))

    db.add(product)
    try:
        _commit_product(db, product)
    except ConflictError:
        delete_image(stored)
        raise
    return get_product(db, product.id)


def update_product(db: Session, product_id: int, data: ProductData, image: Optional[UploadFile] = None) -> Product:
    product = get_product(db, product_id)
    get_category_or_404(db, data.category_id)

    code = _norm_code(data.code) or product.code
    if _code_taken(db, code, exclude_id=product.id):
        raise ConflictError("Product code already exists")

    for key, value in data.model_dump(exclude={"code"}).items():
        setattr(product, key, value)
    product.code = code

    old_image, new_image = None, None
    if image is not None:
        old_image = product.image
        new_image = product.image = save_image(image, IMAGE_FOLDER)

    try:
        _commit_product(db, product)
    except ConflictError:
        delete_image(new_image)
        raise

    # Previous file goes only once the row points at the new one
    if old_image:
        delete_image(old_image)
    return get_product(db, product.id)


def toggle_status(db: Session, product_id: int) -> Product:
    product = get_product(db, product_id)
    product.is_active = not product.is_active
    db.commit()
    return get_product(db, product.id)


def delete_product(db: Session, product_id: int) -> None:
    product = get_product(db, product_id)
    if db.query(SaleItem.id).filter(SaleItem.product_id == product.id).first():
        raise ConflictError("Product has sales history and cannot be deleted; deactivate it instead")

    image = product.image
    db.delete(product)
    db.commit()
    delete_image(image)


def search_products(db: Session, term: Optional[str], limit: Optional[int] = None):
    """Autocomplete over active products: name or code starting with `term`."""
    limit = limit or settings.SEARCH_LIMIT
    query = db.query(Product).filter(Product.is_active.is_(True))
    term = (term or "").strip()
    if term:
        like = f"{term}%"
        query = query.filter(or_(Product.name.ilike(like), Product.code.ilike(like)))
    return query.order_by(Product.name.asc()).limit(limit).all()


def code_preview(db: Session, category_id: int):
    category = get_category_or_404(db, category_id)
    return {
        "category_id": category.id,
        "prefix": codes.prefix_for_category(category.name),
        "last_code": codes.last_code(db, category),
        "code": codes.next_product_code(db, category),
    }


def bulk_codes(db: Session, category_id: int, count: int):
    if count < 1 or count > codes.MAX_BULK_CODES:
        raise ServiceError(f"count must be between 1 and {codes.MAX_BULK_CODES}", status_code=422)
    category = get_category_or_404(db, category_id)
    return {
        "category_id": category.id,
        "prefix": codes.prefix_for_category(category.name),
        "codes": codes.generate_codes(db, category, count),
    }
