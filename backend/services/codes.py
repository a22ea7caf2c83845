# backend/services/codes.py
import re
from typing import List, Optional

from sqlalchemy.orm import Session

from models.category import Category
from models.product import Product

# Fixed 3-letter product code prefixes per pharmacy category
CATEGORY_PREFIXES = {
    "obat bebas": "OBB",
    "obat bebas terbatas": "OBT",
    "obat keras": "OBK",
    "alat kesehatan": "ALK",
    "perawatan tubuh": "PRW",
    "vitamin & suplemen": "VIT",
    "obat herbal": "HRB",
}
DEFAULT_PREFIX = "PRD"
CODE_DIGITS = 4
MAX_BULK_CODES = 50


def prefix_for_category(name: Optional[str]) -> str:
    """Map a category name onto its code prefix; unknown names share the generic prefix."""
    key = " ".join((name or "").split()).lower()
    return CATEGORY_PREFIXES.get(key, DEFAULT_PREFIX)


def _suffix_number(code: str, prefix: str) -> Optional[int]:
    match = re.fullmatch(rf"{re.escape(prefix)}(\d+)", code or "")
    return int(match.group(1)) if match else None


def format_code(prefix: str, number: int) -> str:
    return f"{prefix}{number:0{CODE_DIGITS}d}"


def last_code(db: Session, category: Category) -> Optional[str]:
    """Highest existing product code carrying the category's prefix."""
    prefix = prefix_for_category(category.name)
    candidates = (
        db.query(Product.code)
        .filter(Product.code.like(f"{prefix}%"))
        .order_by(Product.code.desc())
        .all()
    )
    for (code,) in candidates:
        if _suffix_number(code, prefix) is not None:
            return code
    return None


def next_product_code(db: Session, category: Category) -> str:
    """
    Next free code for the category: prefix + 4-digit sequence.

    There is no lock between reading the last code and inserting the product;
    two concurrent creations may compute the same code and the loser hits the
    unique constraint on products.code.
    """
    prefix = prefix_for_category(category.name)
    last = last_code(db, category)
    number = _suffix_number(last, prefix) if last else 0
    return format_code(prefix, number + 1)


def generate_codes(db: Session, category: Category, count: int) -> List[str]:
    """Preview `count` consecutive codes after the current last one (nothing is reserved)."""
    count = max(1, min(count, MAX_BULK_CODES))
    prefix = prefix_for_category(category.name)
    last = last_code(db, category)
    start = (_suffix_number(last, prefix) if last else 0) + 1
    return [format_code(prefix, n) for n in range(start, start + count)]
