# backend/populate_db.py
"""Seed the pharmacy categories and a first owner account. Safe to run repeatedly."""
import os
import sys

# Add 'backend' folder to Python path when run as a script
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from dotenv import load_dotenv

load_dotenv()

from database import SessionLocal, init_db
from models.category import Category
from models.users import User, ROLE_OWNER
from services.categories import slugify
from services.codes import prefix_for_category
from utils.hashing import get_password_hash

CATEGORIES = [
    ("Obat Bebas", "Medicines sold without a prescription"),
    ("Obat Bebas Terbatas", "Over-the-counter medicines with restrictions"),
    ("Obat Keras", "Prescription-only medicines"),
    ("Alat Kesehatan", "Medical and health equipment"),
    ("Perawatan Tubuh", "Body care and hygiene products"),
]


def seed_categories(session) -> int:
    created = 0
    for name, description in CATEGORIES:
        category = session.query(Category).filter(Category.name == name).first()
        if category:
            category.description = description
            continue
        session.add(Category(
            name=name,
            slug=slugify(name),
            code_prefix=prefix_for_category(name),
            description=description,
            is_active=True,
        ))
        created += 1
    session.commit()
    return created


def seed_owner(session) -> bool:
    email = os.getenv("SEED_OWNER_EMAIL", "owner@apotek-sehat.com").strip().lower()
    if session.query(User).filter(User.email == email).first():
        return False
    session.add(User(
        name=os.getenv("SEED_OWNER_NAME", "Owner"),
        email=email,
        password_hash=get_password_hash(os.getenv("SEED_OWNER_PASSWORD", "change-me-now")),
        role=ROLE_OWNER,
    ))
    session.commit()
    return True


def populate_database():
    """Main execution function to populate database."""
    init_db()
    session = SessionLocal()
    try:
        created = seed_categories(session)
        print(f"Categories created: {created}")
        if seed_owner(session):
            print("Owner account created")
    finally:
        session.close()


if __name__ == "__main__":
    populate_database()
