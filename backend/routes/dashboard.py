# backend/routes/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.reports import DashboardResponse, WeeklyComparison
from services import reporting
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


# === Dashboard summary ===
@router.get("", response_model=DashboardResponse)
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return reporting.dashboard(db)


# === Week over week ===
@router.get("/weekly", response_model=WeeklyComparison)
def get_weekly_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return reporting.weekly_comparison(db)
