# backend/services/sales.py
import logging
import random
import re
import time
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from config import settings
from models.product import Product
from models.sale import Sale, SaleItem, SaleStatus
from schemas.sale import SaleCreate, SaleItemCreate
from services.errors import (
    BusinessRuleError, ConflictError, InvoiceNumberUnavailable, NotFoundError
)

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "INV"
INVOICE_DIGITS = 4


def compute_total(items: Iterable[SaleItemCreate]) -> float:
    return round(sum(item.price * item.quantity for item in items), 2)


def invoice_prefix(day: date) -> str:
    return f"{INVOICE_PREFIX}-{day.strftime('%Y%m%d')}-"


def next_invoice_number(db: Session, now: datetime) -> str:
    """Day-scoped sequence: the day's highest INV-YYYYMMDD-NNNN plus one, or 0001."""
    prefix = invoice_prefix(now.date())
    last = (
        db.query(Sale.invoice_number)
        .filter(Sale.invoice_number.like(f"{prefix}%"))
        .order_by(Sale.invoice_number.desc())
        .first()
    )
    number = 0
    if last:
        match = re.fullmatch(rf"{re.escape(prefix)}(\d+)", last[0])
        number = int(match.group(1)) if match else 0
    return f"{prefix}{number + 1:0{INVOICE_DIGITS}d}"


def _backoff() -> None:
    delay = settings.INVOICE_RETRY_DELAY_MS / 1000.0
    time.sleep(delay + random.uniform(0, delay))


def _persist_sale(db: Session, payload: SaleCreate, invoice_number: str, total: float,
                  user_id: Optional[int], now: datetime) -> Sale:
    product_ids = {item.product_id for item in payload.items}
    found = {pid for (pid,) in db.query(Product.id).filter(Product.id.in_(product_ids)).all()}
    missing = sorted(product_ids - found)
    if missing:
        raise NotFoundError(f"Product ID {missing[0]} not found")

    sale = Sale(
        invoice_number=invoice_number,
        user_id=user_id,
        customer_name=payload.customer_name or None,
        total=total,
        payment_amount=payload.payment_amount,
        change_amount=round(payload.payment_amount - total, 2),
        payment_method=payload.payment_method,
        status=SaleStatus.COMPLETED.value,
        notes=payload.notes,
        payment_date=payload.payment_date or now,
        created_at=now,
        updated_at=now,
    )
    db.add(sale)
    # Header first: a duplicate invoice number fails here, before any stock moves
    db.flush()

    for item in payload.items:
        db.add(SaleItem(
            sale_id=sale.id,
            product_id=item.product_id,
            quantity=item.quantity,
            price=item.price,
            subtotal=round(item.price * item.quantity, 2),
        ))
        db.query(Product).filter(Product.id == item.product_id).update(
            {Product.stock: Product.stock - item.quantity}, synchronize_session=False
        )
    db.flush()
    return sale


def create_sale(db: Session, payload: SaleCreate, user_id: Optional[int] = None,
                now: Optional[datetime] = None) -> Sale:
    """
    Persist a completed sale and decrement stock, all in one transaction.

    The invoice number is derived from the day's highest existing number, so two
    concurrent checkouts can pick the same candidate. The unique constraint on
    sales.invoice_number decides the winner; the loser rolls back, waits briefly
    and derives a fresh number, up to INVOICE_MAX_ATTEMPTS times.
    """
    now = now or datetime.now()
    total = compute_total(payload.items)
    if payload.payment_amount < total:
        raise BusinessRuleError("Payment amount is less than the sale total")

    attempts = max(1, settings.INVOICE_MAX_ATTEMPTS)
    for attempt in range(1, attempts + 1):
        invoice_number = next_invoice_number(db, now)

        if db.query(Sale.id).filter(Sale.invoice_number == invoice_number).first():
            logger.warning("Invoice number %s already taken (attempt %d/%d)", invoice_number, attempt, attempts)
            db.rollback()
            _backoff()
            continue

        try:
            sale = _persist_sale(db, payload, invoice_number, total, user_id, now)
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            message = str(exc.orig)
            if "invoice_number" in message:
                logger.warning("Invoice number %s collided on insert (attempt %d/%d)", invoice_number, attempt, attempts)
                _backoff()
                continue
            if "stock" in message:
                raise ConflictError("Insufficient stock for one or more products")
            raise
        except Exception:
            db.rollback()
            raise

        logger.info("Sale %s completed, total %.2f", invoice_number, total)
        return get_sale(db, sale.id)

    logger.error("Giving up on invoice number allocation after %d attempts", attempts)
    raise InvoiceNumberUnavailable()


def get_sale(db: Session, sale_id: int) -> Sale:
    sale = (
        db.query(Sale)
        .options(joinedload(Sale.items).joinedload(SaleItem.product), joinedload(Sale.user))
        .filter(Sale.id == sale_id)
        .first()
    )
    if not sale:
        raise NotFoundError("Sale not found")
    return sale


def day_bounds(day: date):
    start = datetime.combine(day, datetime.min.time())
    return start, start + timedelta(days=1)


def list_sales(db: Session, search: Optional[str] = None, on_date: Optional[date] = None,
               status: Optional[str] = None, page: int = 1, page_size: int = 10):
    query = db.query(Sale)

    if search:
        like = f"%{search}%"
        query = query.filter(or_(Sale.customer_name.ilike(like), Sale.invoice_number.ilike(like)))
    if on_date:
        start, end = day_bounds(on_date)
        query = query.filter(Sale.created_at >= start, Sale.created_at < end)
    if status:
        query = query.filter(Sale.status == status)

    query = query.order_by(Sale.created_at.desc(), Sale.id.desc())
    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


def period_stats(db: Session, start: datetime, end: datetime) -> dict:
    count, revenue = db.query(func.count(Sale.id), func.coalesce(func.sum(Sale.total), 0)).filter(
        Sale.created_at >= start, Sale.created_at < end
    ).one()
    return {"count": int(count or 0), "revenue": round(float(revenue or 0), 2)}


def sales_statistics(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now()
    today_start, today_end = day_bounds(now.date())
    week_start = today_start - timedelta(days=now.weekday())
    month_start = today_start.replace(day=1)
    next_month = (month_start + timedelta(days=32)).replace(day=1)
    year_start = today_start.replace(month=1, day=1)
    next_year = year_start.replace(year=year_start.year + 1)

    average = db.query(func.avg(Sale.total)).scalar()
    return {
        "today": period_stats(db, today_start, today_end),
        "this_week": period_stats(db, week_start, week_start + timedelta(days=7)),
        "this_month": period_stats(db, month_start, next_month),
        "this_year": period_stats(db, year_start, next_year),
        "average_sale_value": round(float(average or 0), 2),
    }
