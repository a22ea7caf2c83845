# backend/services/categories.py
import re
import unicodedata
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.category import Category
from models.product import Product
from schemas.category import CategoryCreate, CategoryUpdate
from services.codes import prefix_for_category
from services.errors import ConflictError, NotFoundError

TRASHED_WITH = "with"
TRASHED_ONLY = "only"


def slugify(value: str) -> str:
    """Lowercase ASCII slug; runs of anything but letters and digits become '-'."""
    ascii_value = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", ascii_value.lower()).strip("-")


def get_category(db: Session, category_id: int, with_trashed: bool = False) -> Category:
    query = db.query(Category).filter(Category.id == category_id)
    if not with_trashed:
        query = query.filter(Category.deleted_at.is_(None))
    category = query.first()
    if not category:
        raise NotFoundError("Category not found")
    return category


def list_categories(db: Session, search: Optional[str] = None, trashed: Optional[str] = None,
                    page: int = 1, page_size: int = 10):
    query = db.query(Category)

    if trashed == TRASHED_ONLY:
        query = query.filter(Category.deleted_at.isnot(None))
    elif trashed != TRASHED_WITH:
        query = query.filter(Category.deleted_at.is_(None))

    if search:
        like = f"%{search}%"
        query = query.filter(Category.name.ilike(like) | Category.description.ilike(like))

    query = query.order_by(Category.name.asc())
    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


def _unique_slug(db: Session, name: str, exclude_id: Optional[int] = None) -> str:
    base = slugify(name) or "category"
    slug, n = base, 1
    while True:
        query = db.query(Category.id).filter(Category.slug == slug)
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        if not query.first():
            return slug
        n += 1
        slug = f"{base}-{n}"


def _name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Category.id).filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


def _prefix_taken(db: Session, prefix: str, exclude_id: int) -> bool:
    return db.query(Category.id).filter(
        Category.code_prefix == prefix, Category.id != exclude_id
    ).first() is not None


def create_category(db: Session, data: CategoryCreate) -> Category:
    name = data.name.strip()
    if _name_taken(db, name):
        raise ConflictError("Category name already exists")

    category = Category(
        name=name,
        slug=_unique_slug(db, name),
        code_prefix=(data.code_prefix or prefix_for_category(name)).strip().upper(),
        description=data.description,
        is_active=data.is_active,
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def update_category(db: Session, category_id: int, data: CategoryUpdate) -> Category:
    category = get_category(db, category_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("name") is not None:
        name = changes["name"].strip()
        if _name_taken(db, name, exclude_id=category.id):
            raise ConflictError("Category name already exists")
        if name != category.name:
            category.name = name
            category.slug = _unique_slug(db, name, exclude_id=category.id)

    if changes.get("code_prefix") is not None:
        prefix = changes["code_prefix"].strip().upper()
        if prefix != category.code_prefix and _prefix_taken(db, prefix, category.id):
            raise ConflictError("Code prefix already used by another category")
        category.code_prefix = prefix

    if "description" in changes:
        category.description = changes["description"]
    if changes.get("is_active") is not None:
        category.is_active = changes["is_active"]

    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: int) -> Category:
    category = get_category(db, category_id)
    in_use = db.query(Product.id).filter(Product.category_id == category.id).first()
    if in_use:
        raise ConflictError("Category has products and cannot be deleted")
    category.deleted_at = datetime.now()
    db.commit()
    db.refresh(category)
    return category


def restore_category(db: Session, category_id: int) -> Category:
    category = get_category(db, category_id, with_trashed=True)
    category.deleted_at = None
    db.commit()
    db.refresh(category)
    return category
