# backend/routes/users.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, ROLE_ADMIN, ROLE_OWNER
from schemas import user as schemas
from utils.hashing import get_password_hash
from utils.tokenJWT import get_current_user, role_required

router = APIRouter(tags=["Users"])


# Register a staff account (owner only)
@router.post("/register", response_model=schemas.UserResponse, status_code=201)
def register(
    user: schemas.UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(ROLE_OWNER)),
):
    normalized_email = user.email.strip().lower()

    if db.query(User).filter(func.lower(User.email) == normalized_email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    new_user = User(
        name=user.name.strip(),
        email=normalized_email,
        password_hash=get_password_hash(user.password),
        role=user.role,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    return new_user


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


# Staff list used to filter the performance report
@router.get("/users", response_model=List[schemas.UserResponse])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(ROLE_OWNER, ROLE_ADMIN)),
):
    return db.query(User).order_by(User.name.asc()).all()
