from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from database import Base

# Append-only audit trail of authenticated requests
class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Classified activity tag (login, sale_create, product_view, ...)
    activity_type = Column(String(50), nullable=False, index=True)
    description = Column(Text, nullable=False)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    # JSON container for route and request metadata
    data = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.now, index=True)

    # Relationship to the acting user
    user = relationship("User", lazy="joined", uselist=False)

    __table_args__ = (
        Index("ix_activity_logs_user_type", "user_id", "activity_type"),
        Index("ix_activity_logs_user_created", "user_id", "created_at"),
    )

    @property
    def user_name(self):
        return self.user.name if self.user else None
