# backend/schemas/product.py
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Literal
from datetime import date, datetime

from schemas.common import ORMBase

StockStatus = Literal["in_stock", "low_stock", "out_of_stock"]


# Validated product form; built from multipart fields in the router
class ProductData(BaseModel):
    code: Optional[str] = Field(default=None, max_length=20)
    name: str = Field(min_length=1, max_length=100)
    category_id: int
    description: Optional[str] = None
    purchase_price: float = Field(ge=0)
    selling_price: float = Field(ge=0)
    stock: int = Field(ge=0)
    min_stock: int = Field(default=0, ge=0)
    unit: str = Field(min_length=1, max_length=20)
    entry_date: Optional[date] = None
    expired_date: Optional[date] = None
    is_active: bool = True

    @model_validator(mode="after")
    def _expiry_after_entry(self):
        if self.entry_date and self.expired_date and self.expired_date < self.entry_date:
            raise ValueError("expired_date must be on or after entry_date")
        return self


# Full product representation including derived fields
class ProductOut(ORMBase):
    id: int
    code: str
    name: str
    category_id: int
    category_name: Optional[str] = None
    description: Optional[str] = None
    purchase_price: float
    selling_price: float
    stock: int
    min_stock: int
    unit: str
    image: Optional[str] = None
    image_url: Optional[str] = None
    entry_date: Optional[date] = None
    expired_date: Optional[date] = None
    is_active: bool
    stock_status: StockStatus
    created_at: Optional[datetime] = None


# Paginated response for product listings
class ProductListPage(BaseModel):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int


# Lightweight row returned by the autocomplete search
class ProductSearchItem(ORMBase):
    id: int
    code: str
    name: str
    selling_price: float
    stock: int


class LastCodeResponse(BaseModel):
    category_id: int
    prefix: str
    last_code: Optional[str] = None
    code: str  # next code to use


class GeneratedCodes(BaseModel):
    category_id: int
    prefix: str
    codes: List[str]
