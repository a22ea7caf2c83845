# backend/services/user_activity.py
"""
Staff performance derived from the activity log and the sales table.

Activities are grouped into working sessions: a session starts on login, on a
dashboard view, after a gap longer than SESSION_TIMEOUT_MINUTES, or on the
first activity; an explicit logout closes it. Scores are per active hour.
"""
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from models.log import ActivityLog
from models.sale import Sale
from models.users import User
from services.activity import ActivityType

SESSION_TIMEOUT_MINUTES = 30
SESSION_STARTERS = {ActivityType.LOGIN.value, ActivityType.DASHBOARD_VIEW.value}


def _minutes_between(start: datetime, end: datetime) -> float:
    return round((end - start).total_seconds() / 60, 2)


def session_productivity(activities: int, sales_made: int, duration: float) -> float:
    if duration <= 0:
        return 0.0
    return round(min(100.0, activities / duration * 60 + sales_made * 10), 2)


def _finalize(session: dict) -> dict:
    duration = _minutes_between(session["start_time"], session["end_time"])
    return {
        "start_time": session["start_time"],
        "end_time": session["end_time"],
        "duration": duration,
        "activities": session["activities"],
        "activity_types": list(dict.fromkeys(session["activity_types"])),
        "sales_made": session["sales_made"],
        "productivity_score": session_productivity(session["activities"], session["sales_made"], duration),
    }


def _open(activity) -> dict:
    return {
        "start_time": activity.created_at,
        "end_time": activity.created_at,
        "activities": 1,
        "activity_types": [activity.activity_type],
        "sales_made": 1 if activity.activity_type == ActivityType.SALE_CREATE.value else 0,
    }


def calculate_sessions(activities: Sequence) -> dict:
    """`activities` must be ordered by created_at; each needs activity_type and created_at."""
    sessions: List[dict] = []
    current = None
    timeout = timedelta(minutes=SESSION_TIMEOUT_MINUTES)

    for activity in activities:
        if current is None or activity.activity_type in SESSION_STARTERS:
            if current:
                sessions.append(_finalize(current))
            current = _open(activity)
        elif activity.created_at - current["end_time"] <= timeout:
            current["end_time"] = activity.created_at
            current["activities"] += 1
            current["activity_types"].append(activity.activity_type)
            if activity.activity_type == ActivityType.SALE_CREATE.value:
                current["sales_made"] += 1
        else:
            sessions.append(_finalize(current))
            current = _open(activity)

        if activity.activity_type == ActivityType.LOGOUT.value:
            sessions.append(_finalize(current))
            current = None

    if current:
        sessions.append(_finalize(current))

    durations = [s["duration"] for s in sessions]
    return {
        "total_sessions": len(sessions),
        "avg_session_duration": round(sum(durations) / len(durations), 2) if durations else 0,
        "longest_session": max(durations) if durations else 0,
        "shortest_session": min(durations) if durations else 0,
        "sessions": sessions,
    }


def productivity_score(sales_count: int, revenue: float, activities_count: int,
                       active_minutes: float, sessions_count: int) -> float:
    """0-100: sales 40, revenue 30, activity level 20, session efficiency 10."""
    if active_minutes <= 0:
        return 0.0
    hours = active_minutes / 60

    sales_score = min(40.0, sales_count / hours * 8)               # 5 sales/hour
    revenue_score = min(30.0, revenue / hours / 100000 * 30)        # 100k/hour
    activity_score = min(20.0, activities_count / hours / 30 * 20)  # 30 actions/hour

    avg_session_hours = hours / sessions_count if sessions_count else 0
    session_score = min(10.0, 2 / avg_session_hours * 10) if avg_session_hours > 0 else 0.0

    return round(sales_score + revenue_score + activity_score + session_score, 2)


def efficiency_rating(score: float) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 65:
        return "Good"
    if score >= 50:
        return "Average"
    if score >= 35:
        return "Below Average"
    return "Poor"


def peak_metrics(activities: Iterable) -> dict:
    hours = Counter(a.created_at.hour for a in activities)
    days = Counter(a.created_at.date().isoformat() for a in activities)
    if not days:
        return {"most_active_hour": None, "most_active_day": None, "peak_activity_count": 0}
    return {
        "most_active_hour": hours.most_common(1)[0][0],
        "most_active_day": days.most_common(1)[0][0],
        "peak_activity_count": max(days.values()),
    }


def user_metrics(db: Session, user: User, start: datetime, end: datetime) -> dict:
    activities = (
        db.query(ActivityLog)
        .filter(ActivityLog.user_id == user.id, ActivityLog.created_at >= start, ActivityLog.created_at < end)
        .order_by(ActivityLog.created_at.asc(), ActivityLog.id.asc())
        .all()
    )
    sales_count, revenue = db.query(func.count(Sale.id), func.coalesce(func.sum(Sale.total), 0)).filter(
        Sale.user_id == user.id, Sale.created_at >= start, Sale.created_at < end
    ).one()
    sales_count, revenue = int(sales_count or 0), float(revenue or 0)

    sessions = calculate_sessions(activities)
    active_minutes = round(sum(s["duration"] for s in sessions["sessions"]), 2)
    active_hours = round(active_minutes / 60, 2)
    score = productivity_score(sales_count, revenue, len(activities), active_minutes, sessions["total_sessions"])

    def per_hour(value):
        return round(value / active_hours, 2) if active_hours > 0 else 0

    return {
        "user_id": user.id,
        "user_name": user.name,
        "user_email": user.email,
        "role_name": user.role,
        "total_sales": sales_count,
        "total_revenue": round(revenue, 2),
        "avg_sale_value": round(revenue / sales_count, 2) if sales_count else 0,
        "sales_per_hour": per_hour(sales_count),
        "revenue_per_hour": per_hour(revenue),
        "total_activities": len(activities),
        "activity_breakdown": dict(Counter(a.activity_type for a in activities)),
        "activities_per_hour": per_hour(len(activities)),
        "total_sessions": sessions["total_sessions"],
        "total_active_time": active_minutes,
        "total_active_hours": active_hours,
        "avg_session_duration": sessions["avg_session_duration"],
        "longest_session": sessions["longest_session"],
        "shortest_session": sessions["shortest_session"],
        "productivity_score": score,
        "efficiency_rating": efficiency_rating(score),
        **peak_metrics(activities),
        "first_activity": activities[0].created_at if activities else None,
        "last_activity": activities[-1].created_at if activities else None,
        "days_active": len({a.created_at.date() for a in activities}),
        "session_details": sessions["sessions"],
    }


def performance_report(db: Session, start_date: date, end_date: date, user_id: Optional[int] = None) -> list:
    start = datetime.combine(start_date, datetime.min.time())
    end = datetime.combine(end_date, datetime.min.time()) + timedelta(days=1)
    query = db.query(User).order_by(User.name.asc())
    if user_id:
        query = query.filter(User.id == user_id)
    return [user_metrics(db, u, start, end) for u in query.all()]


def activity_summary(db: Session, days: int = 7, user_id: Optional[int] = None,
                     now: Optional[datetime] = None) -> dict:
    now = now or datetime.now()
    start = datetime.combine((now - timedelta(days=days)).date(), datetime.min.time())
    query = db.query(ActivityLog).options(joinedload(ActivityLog.user)).filter(ActivityLog.created_at >= start)
    if user_id:
        query = query.filter(ActivityLog.user_id == user_id)
    activities = query.all()

    per_user = Counter(a.user_id for a in activities)
    names = {a.user_id: (a.user.name if a.user else "Unknown") for a in activities}
    return {
        "total_activities": len(activities),
        "unique_users": len(per_user),
        "activity_types": dict(Counter(a.activity_type for a in activities)),
        "daily_breakdown": dict(sorted(Counter(a.created_at.date().isoformat() for a in activities).items())),
        "top_users": [
            {"user_id": uid, "user_name": names[uid], "activity_count": count}
            for uid, count in per_user.most_common(5)
        ],
    }


def time_ago(moment: datetime, now: Optional[datetime] = None) -> str:
    seconds = int(((now or datetime.now()) - moment).total_seconds())
    if seconds < 60:
        return "just now"
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            n = seconds // size
            return f"{n} {unit}{'s' if n != 1 else ''} ago"
    return "just now"


def activity_feed(db: Session, limit: int = 20, now: Optional[datetime] = None) -> list:
    rows = (
        db.query(ActivityLog)
        .options(joinedload(ActivityLog.user))
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "id": a.id,
            "user_name": a.user.name if a.user else "Unknown",
            "activity_type": a.activity_type,
            "description": a.description,
            "time_ago": time_ago(a.created_at, now),
            "created_at": a.created_at,
        }
        for a in rows
    ]
