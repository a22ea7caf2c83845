# schemas/reports.py
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from datetime import date, datetime


# --- Dashboard ---
class DashboardStats(BaseModel):
    total_products: int
    low_stock_products: int
    today_sales: int
    today_revenue: float
    monthly_sales: int
    monthly_revenue: float
    yearly_sales: int
    yearly_revenue: float
    near_expired_products: int

class RecentSaleItem(BaseModel):
    name: str
    quantity: int
    price: float
    subtotal: float

class RecentSale(BaseModel):
    id: int
    invoice: str
    customer: str
    total: float
    date: datetime
    cashier: str
    items_count: int
    items: List[RecentSaleItem]

class LowStockItem(BaseModel):
    id: int
    name: str
    code: str
    stock: int
    min_stock: int
    unit: str
    category: str
    price: float

class NearExpiryItem(BaseModel):
    id: int
    name: str
    code: str
    stock: int
    unit: str
    expired_date: date
    days_until_expiry: int
    category: str
    urgency: str

class TopProduct(BaseModel):
    id: int
    name: str
    code: str
    category: str
    total_sold: int
    total_revenue: float

class SalesChart(BaseModel):
    labels: List[str]
    totals: List[float]
    counts: List[int]

class MonthSummary(BaseModel):
    month: str
    sales: int
    revenue: float

class DashboardResponse(BaseModel):
    stats: DashboardStats
    recent_sales: List[RecentSale]
    low_stock_items: List[LowStockItem]
    near_expired_items: List[NearExpiryItem]
    top_products: List[TopProduct]
    chart: SalesChart
    yearly_summary: List[MonthSummary]


class WeekFigures(BaseModel):
    sales: int
    revenue: float

class WeeklyComparison(BaseModel):
    current_week: WeekFigures
    previous_week: WeekFigures
    comparison: Dict[str, float]


# --- Sales reports ---
class ReportSaleItem(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    price: float
    subtotal: float

class ReportSale(BaseModel):
    id: int
    date: date
    invoice: str
    customer: Optional[str] = None
    total: float
    items: List[ReportSaleItem]

class SalesReportSummary(BaseModel):
    sales_count: int
    revenue: float
    items_sold: int

class SalesReport(BaseModel):
    sales: List[ReportSale]
    summary: SalesReportSummary
    filters: Dict[str, Any]


# --- Product report ---
class ProductReportRow(BaseModel):
    product_id: int
    product_code: str
    product_name: str
    category_id: int
    category_name: str
    current_stock: int
    total_quantity_sold: int
    total_revenue: float
    purchase_price: float
    selling_price: float
    stock_value: float

class ProductReportSummary(BaseModel):
    total_products: int
    total_quantity_sold: int
    total_revenue: float
    total_stock_value: float

class ProductReport(BaseModel):
    products: List[ProductReportRow]
    summary: ProductReportSummary
    filters: Dict[str, Any]


# --- Inventory report ---
class InventoryProductRow(BaseModel):
    id: int
    code: str
    name: str
    category_name: str
    current_stock: int
    min_stock: int
    selling_price: float
    total_sold: int = 0
    expired_date: Optional[date] = None
    days_to_expire: Optional[int] = None

class CategoryDistribution(BaseModel):
    category_id: int
    category_name: str
    product_count: int
    percentage: float
    stock: int
    total_value: float

class InventorySummary(BaseModel):
    total_products: int
    total_stock: int
    total_value: float
    low_stock_count: int
    out_of_stock_count: int
    soon_expired_count: int

class InventoryReport(BaseModel):
    summary: InventorySummary
    low_stock_products: List[InventoryProductRow]
    out_of_stock_products: List[InventoryProductRow]
    soon_expired_products: List[InventoryProductRow]
    best_selling_products: List[InventoryProductRow]
    products_by_category: List[CategoryDistribution]


# --- Staff performance ---
class SessionDetail(BaseModel):
    start_time: datetime
    end_time: datetime
    duration: float
    activities: int
    activity_types: List[str]
    sales_made: int
    productivity_score: float

class UserPerformance(BaseModel):
    user_id: int
    user_name: str
    user_email: str
    role_name: str
    total_sales: int
    total_revenue: float
    avg_sale_value: float
    sales_per_hour: float
    revenue_per_hour: float
    total_activities: int
    activity_breakdown: Dict[str, int]
    activities_per_hour: float
    total_sessions: int
    total_active_time: float
    total_active_hours: float
    avg_session_duration: float
    longest_session: float
    shortest_session: float
    productivity_score: float
    efficiency_rating: str
    most_active_hour: Optional[int] = None
    most_active_day: Optional[str] = None
    peak_activity_count: int
    first_activity: Optional[datetime] = None
    last_activity: Optional[datetime] = None
    days_active: int
    session_details: List[SessionDetail]

class StaffReport(BaseModel):
    users: List[UserPerformance]
    filters: Dict[str, Any]

class TopUser(BaseModel):
    user_id: int
    user_name: str
    activity_count: int

class ActivitySummary(BaseModel):
    total_activities: int
    unique_users: int
    activity_types: Dict[str, int]
    daily_breakdown: Dict[str, int]
    top_users: List[TopUser]

class FeedEntry(BaseModel):
    id: int
    user_name: str
    activity_type: str
    description: str
    time_ago: str
    created_at: datetime
