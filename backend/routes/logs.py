# backend/routes/logs.py
from datetime import date, datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from models.log import ActivityLog
from models.users import User, ROLE_ADMIN, ROLE_OWNER
from schemas.activity import ActivityLogPage
from utils.tokenJWT import role_required

router = APIRouter(prefix="/logs", tags=["Logs"])


@router.get("", response_model=ActivityLogPage)
def get_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user_id: Optional[int] = Query(None, description="Filter by user id"),
    activity_type: Optional[str] = Query(None, description="Filter by activity tag"),
    date_from: Optional[date] = Query(None, description="From date (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, description="To date (YYYY-MM-DD), inclusive"),
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(ROLE_OWNER, ROLE_ADMIN)),
):
    query = db.query(ActivityLog)

    if user_id is not None:
        query = query.filter(ActivityLog.user_id == user_id)
    if activity_type:
        query = query.filter(ActivityLog.activity_type == activity_type)
    if date_from:
        query = query.filter(ActivityLog.created_at >= datetime.combine(date_from, datetime.min.time()))
    if date_to:
        # whole end day
        query = query.filter(ActivityLog.created_at < datetime.combine(date_to + timedelta(days=1), datetime.min.time()))

    query = query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())

    total = query.count()
    logs = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": logs,
        "total": total,
        "page": page,
        "page_size": page_size,
    }
