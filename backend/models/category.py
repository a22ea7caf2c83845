from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.orm import relationship
from database import Base

# Product category; products are coded with the category prefix
class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False, index=True)
    slug = Column(String(60), unique=True, nullable=False, index=True)
    code_prefix = Column(String(10), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
    # Soft delete marker; NULL means the category is live
    deleted_at = Column(DateTime, nullable=True, index=True)

    products = relationship("Product", back_populates="category")

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
