from datetime import datetime
import enum
from sqlalchemy import Column, Integer, String, Float, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    DEBIT = "debit"
    CREDIT = "credit"


# Sales are written once at checkout; "completed" is the only state
class SaleStatus(str, enum.Enum):
    COMPLETED = "completed"


# Represents a completed counter sale (the invoice header)
class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(32), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    customer_name = Column(String(255), nullable=True)

    total = Column(Float, nullable=False)
    payment_amount = Column(Float, nullable=False)
    change_amount = Column(Float, nullable=False)
    payment_method = Column(String(10), nullable=False, default=PaymentMethod.CASH.value)
    status = Column(String(20), nullable=False, default=SaleStatus.COMPLETED.value, index=True)
    notes = Column(Text, nullable=True)

    payment_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.now, index=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.id")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("invoice_number", name="uq_sales_invoice_number"),
    )


# Represents a line item on a sale
class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    subtotal = Column(Float, nullable=False)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")

    @property
    def product_name(self):
        return self.product.name if self.product else None

    @property
    def product_code(self):
        return self.product.code if self.product else None
