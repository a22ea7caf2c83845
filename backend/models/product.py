# backend/models/product.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Text, Boolean, Date, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base

IN_STOCK = "in_stock"
LOW_STOCK = "low_stock"
OUT_OF_STOCK = "out_of_stock"
STOCK_STATUSES = (IN_STOCK, LOW_STOCK, OUT_OF_STOCK)


def stock_status_for(stock: int, min_stock: int) -> str:
    """Bucket a stock level: empty, at or under the threshold, or above it."""
    if (stock or 0) <= 0:
        return OUT_OF_STOCK
    if stock <= (min_stock or 0):
        return LOW_STOCK
    return IN_STOCK


# Product
# A single item sold at the counter. Holds catalog data, purchase and selling
# prices, current stock with its reorder threshold, and the optional batch
# entry/expiry dates.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Prices are guarded by check constraints.
    purchase_price = Column(Float, CheckConstraint("purchase_price >= 0"), nullable=False, default=0)
    selling_price = Column(Float, CheckConstraint("selling_price >= 0"), nullable=False, default=0)

    # Stock data. Sales decrement `stock`; the constraint is the only floor.
    stock = Column(Integer, CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"), nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)
    unit = Column(String(20), nullable=False)

    # Relative path under the upload directory.
    image = Column(String, nullable=True)

    entry_date = Column(Date, nullable=True)
    expired_date = Column(Date, nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    category = relationship("Category", back_populates="products")

    @property
    def stock_status(self) -> str:
        return stock_status_for(self.stock, self.min_stock)

    @property
    def category_name(self):
        return self.category.name if self.category else None

    @property
    def image_url(self):
        # Served by the /uploads static mount
        return f"/uploads/{self.image}" if self.image else None
