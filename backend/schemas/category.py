from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from schemas.common import ORMBase


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    code_prefix: Optional[str] = Field(default=None, max_length=10)
    description: Optional[str] = None
    is_active: bool = True


# Partial update; omitted fields stay untouched
class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    code_prefix: Optional[str] = Field(default=None, min_length=1, max_length=10)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class CategoryOut(ORMBase):
    id: int
    name: str
    slug: str
    code_prefix: str
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


class CategoryListPage(BaseModel):
    items: List[CategoryOut]
    total: int
    page: int
    page_size: int
