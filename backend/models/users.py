from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from database import Base

# Known roles; the role gate compares lowercase names
ROLE_ADMIN = "admin"
ROLE_OWNER = "owner"
ROLE_WAREHOUSE = "warehouse"
ROLE_CASHIER = "cashier"
ROLES = (ROLE_ADMIN, ROLE_OWNER, ROLE_WAREHOUSE, ROLE_CASHIER)

# Represents a user account with authentication details and system role
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_CASHIER)
    created_at = Column(DateTime, default=datetime.now)
