# routes/reports.py
from datetime import date, datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, ROLE_OWNER
from schemas import reports as report_schemas
from services import reporting, user_activity
from utils.tokenJWT import role_required

router = APIRouter(prefix="/reports", tags=["Reports"])

owner_only = role_required(ROLE_OWNER)


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and end_date < start_date:
        raise HTTPException(status_code=422, detail="end_date must be on or after start_date")


# -----------------------------
# 1) Periodic sales reports
# -----------------------------
@router.get("/weekly", response_model=report_schemas.SalesReport)
def weekly_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(owner_only),
):
    _check_range(start_date, end_date)
    return reporting.weekly_report(db, start_date, end_date)


@router.get("/monthly", response_model=report_schemas.SalesReport)
def monthly_report(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: Session = Depends(get_db),
    current_user: User = Depends(owner_only),
):
    now = datetime.now()
    return reporting.monthly_report(db, month or now.month, year or now.year)


@router.get("/yearly", response_model=report_schemas.SalesReport)
def yearly_report(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: Session = Depends(get_db),
    current_user: User = Depends(owner_only),
):
    return reporting.yearly_report(db, year or datetime.now().year)


# -----------------------------
# 2) Product & inventory
# -----------------------------
@router.get("/products", response_model=report_schemas.ProductReport)
def product_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    category_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(owner_only),
):
    _check_range(start_date, end_date)
    return reporting.product_report(db, start_date, end_date, category_id)


@router.get("/inventory", response_model=report_schemas.InventoryReport)
def inventory_report(
    db: Session = Depends(get_db),
    current_user: User = Depends(owner_only),
):
    return reporting.inventory_report(db)


# -----------------------------
# 3) CSV export
# -----------------------------
@router.get("/sales/export")
def export_sales(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(owner_only),
):
    today = date.today()
    start_date = start_date or today.replace(day=1)
    end_date = end_date or today
    _check_range(start_date, end_date)

    content = reporting.export_sales_csv(db, start_date, end_date)
    filename = f"sales-{start_date.isoformat()}-{end_date.isoformat()}.csv"
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# -----------------------------
# 4) Staff performance
# -----------------------------
@router.get("/staff", response_model=report_schemas.StaffReport)
def staff_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(owner_only),
):
    today = date.today()
    end_date = end_date or today
    start_date = start_date or end_date - timedelta(days=29)
    _check_range(start_date, end_date)
    return {
        "users": user_activity.performance_report(db, start_date, end_date, user_id),
        "filters": {"start_date": start_date, "end_date": end_date, "user_id": user_id},
    }


@router.get("/activity-summary", response_model=report_schemas.ActivitySummary)
def activity_summary(
    days: int = Query(7, ge=1, le=365),
    user_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(owner_only),
):
    return user_activity.activity_summary(db, days=days, user_id=user_id)


@router.get("/activity-feed", response_model=List[report_schemas.FeedEntry])
def activity_feed(
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(owner_only),
):
    return user_activity.activity_feed(db, limit=limit)
