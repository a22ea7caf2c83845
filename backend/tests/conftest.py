# backend/tests/conftest.py
import os
import tempfile
from datetime import date

# The app reads its settings at import time: point it at throwaway storage first
_TMP = tempfile.mkdtemp(prefix="pharmacy-pos-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["INVOICE_DIR"] = os.path.join(_TMP, "invoices")
os.environ["FONT_DIR"] = os.path.join(_TMP, "fonts")
os.environ["INVOICE_RETRY_DELAY_MS"] = "5"

import pytest
from fastapi.testclient import TestClient

import main
from database import Base, SessionLocal, engine
from models.category import Category
from models.product import Product
from models.users import User, ROLES
from services.categories import slugify
from services.codes import prefix_for_category
from utils.cache import InMemoryCache
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token

PASSWORD = "secret-pass-123"


class FakeClock:
    """Monotonic stand-in the tests can move forward."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return InMemoryCache(clock=clock)


@pytest.fixture
def client(cache):
    app = main.create_app(cache=cache)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def password():
    return PASSWORD


@pytest.fixture(scope="session")
def password_hash():
    return get_password_hash(PASSWORD)


@pytest.fixture
def make_user(db, password_hash):
    def _make(role: str = "cashier", email: str = None, name: str = None) -> User:
        assert role in ROLES
        user = User(
            name=name or role.title(),
            email=email or f"{role}@apotek-sehat.com",
            password_hash=password_hash,
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token({"sub": user.email, "role": user.role})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def owner(make_user):
    return make_user("owner")


@pytest.fixture
def warehouse(make_user):
    return make_user("warehouse")


@pytest.fixture
def cashier(make_user):
    return make_user("cashier")


@pytest.fixture
def make_category(db):
    def _make(name: str = "Obat Bebas", **kwargs) -> Category:
        category = Category(
            name=name,
            slug=slugify(name),
            code_prefix=kwargs.pop("code_prefix", prefix_for_category(name)),
            **kwargs,
        )
        db.add(category)
        db.commit()
        db.refresh(category)
        return category
    return _make


@pytest.fixture
def make_product(db, make_category):
    counter = {"n": 0}

    def _make(category: Category = None, **kwargs) -> Product:
        counter["n"] += 1
        if category is None:
            category = db.query(Category).first() or make_category()
        values = dict(
            code=f"TST{counter['n']:04d}",
            name=f"Product {counter['n']}",
            category_id=category.id,
            purchase_price=1000,
            selling_price=1500,
            stock=10,
            min_stock=2,
            unit="box",
        )
        values.update(kwargs)
        product = Product(**values)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


@pytest.fixture
def today():
    return date.today()
