# schemas/sale.py
from pydantic import BaseModel, Field
from typing import List, Optional, Literal
from datetime import datetime

from schemas.common import ORMBase

PaymentMethodName = Literal["cash", "debit", "credit"]

# Input schema for a single cart line
class SaleItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    price: float = Field(ge=0)

# Input schema for checkout
class SaleCreate(BaseModel):
    customer_name: Optional[str] = Field(default=None, max_length=255)
    payment_method: PaymentMethodName
    payment_amount: float = Field(ge=0)
    items: List[SaleItemCreate] = Field(min_length=1)
    notes: Optional[str] = None
    payment_date: Optional[datetime] = None

# Output schema for a sale line item
class SaleItemOut(ORMBase):
    id: int
    product_id: int
    product_name: Optional[str] = None
    product_code: Optional[str] = None
    quantity: int
    price: float
    subtotal: float

# Output schema for a persisted sale
class SaleOut(ORMBase):
    id: int
    invoice_number: str
    user_id: Optional[int] = None
    customer_name: Optional[str] = None
    total: float
    payment_amount: float
    change_amount: float
    payment_method: str
    status: str
    notes: Optional[str] = None
    payment_date: Optional[datetime] = None
    created_at: datetime
    items: List[SaleItemOut]

# Schema for summary representation in lists
class SaleListItem(ORMBase):
    id: int
    invoice_number: str
    customer_name: Optional[str] = None
    total: float
    payment_method: str
    status: str
    created_at: datetime
    user_id: Optional[int] = None

# Paginated response wrapper for sale lists
class SaleListPage(BaseModel):
    items: List[SaleListItem]
    total: int
    page: int
    page_size: int

class PeriodStats(BaseModel):
    count: int
    revenue: float

class SalesStatistics(BaseModel):
    today: PeriodStats
    this_week: PeriodStats
    this_month: PeriodStats
    this_year: PeriodStats
    average_sale_value: float
