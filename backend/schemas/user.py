from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal
from datetime import datetime

from schemas.common import ORMBase

RoleName = Literal["admin", "owner", "warehouse", "cashier"]

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for registration requests (issued by the owner)
class UserCreate(UserBase):
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8)
    role: RoleName = "cashier"

# Output schema for user profile details
class UserResponse(ORMBase):
    id: int
    name: str
    email: EmailStr
    role: str
    created_at: Optional[datetime] = None

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
