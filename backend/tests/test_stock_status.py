import pytest

from models.product import Product, stock_status_for, STOCK_STATUSES
from services.catalog import apply_stock_status_filter


@pytest.mark.parametrize("stock,min_stock,expected", [
    (0, 5, "out_of_stock"),
    (0, 0, "out_of_stock"),
    (1, 5, "low_stock"),
    (5, 5, "low_stock"),
    (6, 5, "in_stock"),
    (1, 0, "in_stock"),
])
def test_stock_status_buckets(stock, min_stock, expected):
    assert stock_status_for(stock, min_stock) == expected


def test_database_filter_matches_the_property(db, make_product):
    grid = [(0, 5), (0, 0), (1, 5), (5, 5), (6, 5), (1, 0), (20, 3)]
    products = [make_product(stock=s, min_stock=m) for s, m in grid]

    for status in STOCK_STATUSES:
        expected = {p.id for p in products if p.stock_status == status}
        found = {p.id for p in apply_stock_status_filter(db.query(Product), status).all()}
        assert found == expected, status


def test_no_filter_returns_everything(db, make_product):
    make_product(stock=0)
    make_product(stock=10)
    assert apply_stock_status_filter(db.query(Product), None).count() == 2
