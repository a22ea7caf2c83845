from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from schemas.common import ORMBase


class SupplierBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = None
    items: Optional[str] = None  # free text: what this supplier delivers


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(SupplierBase):
    pass


class SupplierOut(ORMBase):
    id: int
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    items: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SupplierListPage(BaseModel):
    items: List[SupplierOut]
    total: int
    page: int
    page_size: int
