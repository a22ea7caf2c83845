# schemas/activity.py
from pydantic import BaseModel
from typing import Any, List, Optional
from datetime import datetime

from schemas.common import ORMBase


class ActivityLogOut(ORMBase):
    id: int
    user_id: int
    user_name: Optional[str] = None
    activity_type: str
    description: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    data: Optional[Any] = None
    created_at: datetime


class ActivityLogPage(BaseModel):
    items: List[ActivityLogOut]
    total: int
    page: int
    page_size: int
