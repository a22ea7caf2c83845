# backend/services/reporting.py
import csv
import io
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import extract, func
from sqlalchemy.orm import Session, joinedload

from config import settings
from models.category import Category
from models.product import Product, LOW_STOCK, OUT_OF_STOCK
from models.sale import Sale, SaleItem
from services.catalog import apply_stock_status_filter
from services.sales import day_bounds, period_stats

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
CHART_DAYS = 30
TOP_PRODUCTS_DAYS = 30
WIDGET_LIMIT = 10


def urgency_for(days_left: int) -> str:
    if days_left <= 7:
        return "critical"
    if days_left <= 14:
        return "warning"
    return "caution"


def percent_change(current: float, previous: float) -> float:
    if previous > 0:
        return round((current - previous) / previous * 100, 1)
    return 100.0 if current > 0 else 0.0


def _month_bounds(year: int, month: int):
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


def _near_expiry_query(db: Session, today: date, days: int):
    return db.query(Product).filter(
        Product.expired_date.isnot(None),
        Product.expired_date >= today,
        Product.expired_date <= today + timedelta(days=days),
    )


# -----------------------------
# Dashboard
# -----------------------------
def dashboard(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now()
    today = now.date()
    today_start, today_end = day_bounds(today)
    month_start, month_end = _month_bounds(now.year, now.month)
    year_start, year_end = datetime(now.year, 1, 1), datetime(now.year + 1, 1, 1)

    today_stats = period_stats(db, today_start, today_end)
    month_stats = period_stats(db, month_start, month_end)
    year_stats = period_stats(db, year_start, year_end)

    low_stock_q = apply_stock_status_filter(db.query(Product), LOW_STOCK)
    near_expiry_q = _near_expiry_query(db, today, settings.EXPIRY_WARNING_DAYS)

    stats = {
        "total_products": db.query(func.count(Product.id)).scalar() or 0,
        "low_stock_products": low_stock_q.count(),
        "today_sales": today_stats["count"],
        "today_revenue": today_stats["revenue"],
        "monthly_sales": month_stats["count"],
        "monthly_revenue": month_stats["revenue"],
        "yearly_sales": year_stats["count"],
        "yearly_revenue": year_stats["revenue"],
        "near_expired_products": near_expiry_q.count(),
    }

    recent = (
        db.query(Sale)
        .options(joinedload(Sale.items).joinedload(SaleItem.product), joinedload(Sale.user))
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(WIDGET_LIMIT)
        .all()
    )
    recent_sales = [
        {
            "id": s.id,
            "invoice": s.invoice_number,
            "customer": s.customer_name or "Walk-in customer",
            "total": float(s.total),
            "date": s.created_at,
            "cashier": s.user.name if s.user else "-",
            "items_count": len(s.items),
            "items": [
                {"name": it.product_name or "-", "quantity": it.quantity,
                 "price": float(it.price), "subtotal": float(it.subtotal)}
                for it in s.items
            ],
        }
        for s in recent
    ]

    low_stock_items = [
        {
            "id": p.id, "name": p.name, "code": p.code, "stock": p.stock,
            "min_stock": p.min_stock, "unit": p.unit,
            "category": p.category_name or "-", "price": float(p.selling_price),
        }
        for p in low_stock_q.options(joinedload(Product.category))
        .order_by(Product.stock.asc(), Product.name.asc()).limit(WIDGET_LIMIT).all()
    ]

    near_expired_items = []
    for p in near_expiry_q.options(joinedload(Product.category)).order_by(Product.expired_date.asc()).limit(WIDGET_LIMIT):
        days_left = (p.expired_date - today).days
        near_expired_items.append({
            "id": p.id, "name": p.name, "code": p.code, "stock": p.stock, "unit": p.unit,
            "expired_date": p.expired_date, "days_until_expiry": days_left,
            "category": p.category_name or "-", "urgency": urgency_for(days_left),
        })

    return {
        "stats": stats,
        "recent_sales": recent_sales,
        "low_stock_items": low_stock_items,
        "near_expired_items": near_expired_items,
        "top_products": top_products(db, now - timedelta(days=TOP_PRODUCTS_DAYS)),
        "chart": sales_chart(db, today),
        "yearly_summary": yearly_summary(db, now.year),
    }


def top_products(db: Session, since: datetime, limit: int = WIDGET_LIMIT) -> list:
    total_sold = func.sum(SaleItem.quantity).label("total_sold")
    rows = (
        db.query(
            Product.id, Product.name, Product.code, Category.name.label("category"),
            total_sold,
            func.sum(SaleItem.quantity * SaleItem.price).label("total_revenue"),
        )
        .join(SaleItem, SaleItem.product_id == Product.id)
        .join(Sale, SaleItem.sale_id == Sale.id)
        .outerjoin(Category, Product.category_id == Category.id)
        .filter(Sale.created_at >= since)
        .group_by(Product.id, Product.name, Product.code, Category.name)
        .order_by(total_sold.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "id": r.id, "name": r.name, "code": r.code,
            "category": r.category or "Uncategorized",
            "total_sold": int(r.total_sold or 0),
            "total_revenue": round(float(r.total_revenue or 0), 2),
        }
        for r in rows
    ]


def sales_chart(db: Session, today: date, days: int = CHART_DAYS) -> dict:
    """Daily revenue for the last `days` days, zero-filled."""
    first_day = today - timedelta(days=days - 1)
    start, _ = day_bounds(first_day)
    _, end = day_bounds(today)

    rows = (
        db.query(
            func.date(Sale.created_at).label("date"),
            func.sum(Sale.total).label("total"),
            func.count(Sale.id).label("count"),
        )
        .filter(Sale.created_at >= start, Sale.created_at < end)
        .group_by(func.date(Sale.created_at))
        .all()
    )
    by_date = {str(r.date): r for r in rows}

    labels, totals, counts = [], [], []
    for i in range(days):
        day = first_day + timedelta(days=i)
        row = by_date.get(day.isoformat())
        labels.append(day.strftime("%d %b"))
        totals.append(round(float(row.total), 2) if row else 0.0)
        counts.append(int(row.count) if row else 0)
    return {"labels": labels, "totals": totals, "counts": counts}


def yearly_summary(db: Session, year: int) -> list:
    month_col = extract("month", Sale.created_at)
    rows = (
        db.query(month_col.label("month"), func.count(Sale.id).label("sales"), func.sum(Sale.total).label("revenue"))
        .filter(Sale.created_at >= datetime(year, 1, 1), Sale.created_at < datetime(year + 1, 1, 1))
        .group_by(month_col)
        .all()
    )
    by_month = {int(r.month): r for r in rows}
    summary = []
    for month in range(1, 13):
        row = by_month.get(month)
        summary.append({
            "month": MONTH_NAMES[month - 1],
            "sales": int(row.sales) if row else 0,
            "revenue": round(float(row.revenue or 0), 2) if row else 0.0,
        })
    return summary


def weekly_comparison(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now()
    today_start, _ = day_bounds(now.date())
    current_start = today_start - timedelta(days=now.weekday())
    previous_start = current_start - timedelta(days=7)

    current = period_stats(db, current_start, current_start + timedelta(days=7))
    previous = period_stats(db, previous_start, current_start)
    return {
        "current_week": {"sales": current["count"], "revenue": current["revenue"]},
        "previous_week": {"sales": previous["count"], "revenue": previous["revenue"]},
        "comparison": {
            "sales": percent_change(current["count"], previous["count"]),
            "revenue": percent_change(current["revenue"], previous["revenue"]),
        },
    }


# -----------------------------
# Inventory listings
# -----------------------------
def _page(query, page: int, page_size: int) -> dict:
    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


def low_stock(db: Session, page: int = 1, page_size: int = 10) -> dict:
    query = apply_stock_status_filter(db.query(Product).options(joinedload(Product.category)), LOW_STOCK)
    return _page(query.order_by(Product.stock.asc(), Product.name.asc()), page, page_size)


def out_of_stock(db: Session, page: int = 1, page_size: int = 10) -> dict:
    query = apply_stock_status_filter(db.query(Product).options(joinedload(Product.category)), OUT_OF_STOCK)
    return _page(query.order_by(Product.name.asc()), page, page_size)


def expiring(db: Session, days: int, today: Optional[date] = None, page: int = 1, page_size: int = 10) -> dict:
    today = today or date.today()
    query = _near_expiry_query(db, today, days).options(joinedload(Product.category))
    return _page(query.order_by(Product.expired_date.asc(), Product.name.asc()), page, page_size)


def expired(db: Session, today: Optional[date] = None, search: Optional[str] = None,
            category_id: Optional[int] = None, page: int = 1, page_size: int = 10) -> dict:
    today = today or date.today()
    query = db.query(Product).options(joinedload(Product.category)).filter(
        Product.expired_date.isnot(None), Product.expired_date < today
    )
    if search:
        like = f"%{search}%"
        query = query.filter(Product.name.ilike(like) | Product.code.ilike(like))
    if category_id:
        query = query.filter(Product.category_id == category_id)
    return _page(query.order_by(Product.expired_date.desc()), page, page_size)


# -----------------------------
# Sales reports
# -----------------------------
def _sales_between(db: Session, start: datetime, end: datetime) -> list:
    return (
        db.query(Sale)
        .options(joinedload(Sale.items).joinedload(SaleItem.product))
        .filter(Sale.created_at >= start, Sale.created_at < end)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )


def _sales_report(sales: list, filters: dict) -> dict:
    rows = []
    for s in sales:
        rows.append({
            "id": s.id,
            "date": s.created_at.date(),
            "invoice": s.invoice_number,
            "customer": s.customer_name,
            "total": float(s.total),
            "items": [
                {
                    "product_id": it.product_id, "product_name": it.product_name or "-",
                    "quantity": it.quantity, "price": float(it.price), "subtotal": float(it.subtotal),
                }
                for it in s.items
            ],
        })
    summary = {
        "sales_count": len(rows),
        "revenue": round(sum(r["total"] for r in rows), 2),
        "items_sold": sum(i["quantity"] for r in rows for i in r["items"]),
    }
    return {"sales": rows, "summary": summary, "filters": filters}


def weekly_report(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None,
                  today: Optional[date] = None) -> dict:
    today = today or date.today()
    start_date = start_date or today - timedelta(days=today.weekday())
    end_date = end_date or start_date + timedelta(days=6)
    start, _ = day_bounds(start_date)
    _, end = day_bounds(end_date)
    return _sales_report(_sales_between(db, start, end), {"start_date": start_date, "end_date": end_date})


def monthly_report(db: Session, month: int, year: int) -> dict:
    start, end = _month_bounds(year, month)
    return _sales_report(_sales_between(db, start, end), {"month": month, "year": year})


def yearly_report(db: Session, year: int) -> dict:
    return _sales_report(
        _sales_between(db, datetime(year, 1, 1), datetime(year + 1, 1, 1)), {"year": year}
    )


def product_report(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None,
                   category_id: Optional[int] = None) -> dict:
    products_q = db.query(Product).options(joinedload(Product.category))
    if category_id:
        products_q = products_q.filter(Product.category_id == category_id)
    products = products_q.order_by(Product.name.asc()).all()

    sold_q = (
        db.query(
            SaleItem.product_id,
            func.sum(SaleItem.quantity).label("quantity"),
            func.sum(SaleItem.subtotal).label("revenue"),
        )
        .join(Sale, SaleItem.sale_id == Sale.id)
    )
    # Both ends are needed to narrow the window
    if start_date and end_date:
        start, _ = day_bounds(start_date)
        _, end = day_bounds(end_date)
        sold_q = sold_q.filter(Sale.created_at >= start, Sale.created_at < end)
    sold = {r.product_id: r for r in sold_q.group_by(SaleItem.product_id).all()}

    rows = []
    for p in products:
        s = sold.get(p.id)
        rows.append({
            "product_id": p.id,
            "product_code": p.code,
            "product_name": p.name,
            "category_id": p.category_id,
            "category_name": p.category_name or "-",
            "current_stock": p.stock,
            "total_quantity_sold": int(s.quantity) if s else 0,
            "total_revenue": round(float(s.revenue), 2) if s else 0.0,
            "purchase_price": float(p.purchase_price),
            "selling_price": float(p.selling_price),
            "stock_value": round(p.stock * float(p.purchase_price), 2),
        })

    summary = {
        "total_products": len(rows),
        "total_quantity_sold": sum(r["total_quantity_sold"] for r in rows),
        "total_revenue": round(sum(r["total_revenue"] for r in rows), 2),
        "total_stock_value": round(sum(r["stock_value"] for r in rows), 2),
    }
    return {
        "products": rows,
        "summary": summary,
        "filters": {"start_date": start_date, "end_date": end_date, "category_id": category_id},
    }


def _product_row(p: Product, total_sold: Optional[int] = None) -> dict:
    return {
        "id": p.id,
        "code": p.code,
        "name": p.name,
        "category_name": p.category_name or "-",
        "current_stock": p.stock,
        "min_stock": p.min_stock,
        "selling_price": float(p.selling_price),
        "total_sold": total_sold or 0,
    }


def inventory_report(db: Session, today: Optional[date] = None) -> dict:
    today = today or date.today()
    base = db.query(Product).options(joinedload(Product.category))

    total_products = db.query(func.count(Product.id)).scalar() or 0
    total_stock = db.query(func.coalesce(func.sum(Product.stock), 0)).scalar() or 0
    total_value = db.query(func.coalesce(func.sum(Product.stock * Product.purchase_price), 0)).scalar() or 0

    low = [_product_row(p) for p in apply_stock_status_filter(base, LOW_STOCK).order_by(Product.stock.asc()).all()]
    out = [_product_row(p) for p in apply_stock_status_filter(base, OUT_OF_STOCK).order_by(Product.name.asc()).all()]

    soon = []
    soon_q = base.filter(
        Product.expired_date.isnot(None),
        Product.expired_date > today,
        Product.expired_date <= today + timedelta(days=settings.EXPIRY_WARNING_DAYS),
    ).order_by(Product.expired_date.asc())
    for p in soon_q.all():
        row = _product_row(p)
        row["expired_date"] = p.expired_date
        row["days_to_expire"] = (p.expired_date - today).days
        soon.append(row)

    total_sold = func.sum(SaleItem.quantity).label("total_sold")
    best = (
        db.query(SaleItem.product_id, total_sold)
        .group_by(SaleItem.product_id)
        .order_by(total_sold.desc())
        .limit(WIDGET_LIMIT)
        .all()
    )
    by_id = {p.id: p for p in base.filter(Product.id.in_([b.product_id for b in best])).all()} if best else {}
    best_selling = [_product_row(by_id[b.product_id], int(b.total_sold)) for b in best if b.product_id in by_id]

    per_category = (
        db.query(
            Category.id, Category.name,
            func.count(Product.id).label("product_count"),
            func.coalesce(func.sum(Product.stock), 0).label("stock"),
            func.coalesce(func.sum(Product.stock * Product.purchase_price), 0).label("value"),
        )
        .join(Product, Product.category_id == Category.id)
        .group_by(Category.id, Category.name)
        .order_by(Category.name.asc())
        .all()
    )
    by_category = [
        {
            "category_id": c.id,
            "category_name": c.name,
            "product_count": int(c.product_count),
            "percentage": round(c.product_count / total_products * 100, 2) if total_products else 0.0,
            "stock": int(c.stock),
            "total_value": round(float(c.value), 2),
        }
        for c in per_category
    ]

    return {
        "summary": {
            "total_products": total_products,
            "total_stock": int(total_stock),
            "total_value": round(float(total_value), 2),
            "low_stock_count": len(low),
            "out_of_stock_count": len(out),
            "soon_expired_count": len(soon),
        },
        "low_stock_products": low,
        "out_of_stock_products": out,
        "soon_expired_products": soon,
        "best_selling_products": best_selling,
        "products_by_category": by_category,
    }


EXPORT_COLUMNS = ["invoice_number", "date", "customer", "cashier", "payment_method", "items", "total", "payment_amount", "change_amount"]


def export_sales_csv(db: Session, start_date: date, end_date: date) -> str:
    start, _ = day_bounds(start_date)
    _, end = day_bounds(end_date)
    sales = (
        db.query(Sale)
        .options(joinedload(Sale.items), joinedload(Sale.user))
        .filter(Sale.created_at >= start, Sale.created_at < end)
        .order_by(Sale.created_at.asc(), Sale.id.asc())
        .all()
    )

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(EXPORT_COLUMNS)
    for s in sales:
        writer.writerow([
            s.invoice_number,
            s.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            s.customer_name or "",
            s.user.name if s.user else "",
            s.payment_method,
            sum(it.quantity for it in s.items),
            f"{s.total:.2f}",
            f"{s.payment_amount:.2f}",
            f"{s.change_amount:.2f}",
        ])
    return buf.getvalue()
