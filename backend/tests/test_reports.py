import csv
import io
from datetime import date, datetime, timedelta

import pytest

from schemas.sale import SaleCreate, SaleItemCreate
from services import reporting, sales

NOW = datetime(2026, 3, 5, 10, 30)  # Thursday


def _sell(db, product, qty=1, price=1000, now=None, user_id=None, customer=None):
    payload = SaleCreate(
        customer_name=customer,
        payment_method="cash",
        payment_amount=qty * price,
        items=[SaleItemCreate(product_id=product.id, quantity=qty, price=price)],
    )
    return sales.create_sale(db, payload, user_id=user_id, now=now or datetime.now())


@pytest.mark.parametrize("days,expected", [
    (0, "critical"), (7, "critical"), (8, "warning"), (14, "warning"), (15, "caution"), (30, "caution"),
])
def test_urgency_boundaries(days, expected):
    assert reporting.urgency_for(days) == expected


@pytest.mark.parametrize("current,previous,expected", [
    (150, 100, 50.0),
    (50, 100, -50.0),
    (1, 3, -66.7),
    (5, 0, 100.0),
    (0, 0, 0.0),
])
def test_percent_change(current, previous, expected):
    assert reporting.percent_change(current, previous) == expected


def test_weekly_comparison(db, make_product):
    p = make_product(stock=50)
    _sell(db, p, 1, 1000, now=NOW)
    _sell(db, p, 2, 1000, now=datetime(2026, 3, 2, 8, 0))
    _sell(db, p, 1, 2000, now=datetime(2026, 2, 24, 8, 0))
    _sell(db, p, 1, 9999, now=datetime(2026, 2, 10, 8, 0))

    result = reporting.weekly_comparison(db, now=NOW)

    assert result["current_week"] == {"sales": 2, "revenue": 3000.0}
    assert result["previous_week"] == {"sales": 1, "revenue": 2000.0}
    assert result["comparison"] == {"sales": 100.0, "revenue": 50.0}


def test_dashboard(client, db, make_product, cashier, auth_headers, today):
    best = make_product(name="Paracetamol", stock=30)
    make_product(name="Vitamin C", stock=2, min_stock=5)
    make_product(name="Obat Batuk", stock=8, expired_date=today + timedelta(days=5))
    make_product(name="Salep", stock=8, expired_date=today + timedelta(days=60))
    _sell(db, best, 3, 5000, user_id=cashier.id, customer="Sari")

    res = client.get("/dashboard", headers=auth_headers(cashier))
    assert res.status_code == 200
    body = res.json()

    assert body["stats"]["total_products"] == 4
    assert body["stats"]["low_stock_products"] == 1
    assert body["stats"]["today_sales"] == 1
    assert body["stats"]["today_revenue"] == 15000
    assert body["stats"]["near_expired_products"] == 1

    [recent] = body["recent_sales"]
    assert recent["customer"] == "Sari"
    assert recent["cashier"] == cashier.name
    assert recent["items"][0]["name"] == "Paracetamol"

    assert [i["name"] for i in body["low_stock_items"]] == ["Vitamin C"]
    [near] = body["near_expired_items"]
    assert near["days_until_expiry"] == 5
    assert near["urgency"] == "critical"

    assert body["top_products"][0]["name"] == "Paracetamol"
    assert body["top_products"][0]["total_sold"] == 3

    assert len(body["chart"]["labels"]) == 30
    assert body["chart"]["totals"][-1] == 15000
    assert len(body["yearly_summary"]) == 12
    assert sum(m["sales"] for m in body["yearly_summary"]) == 1


def test_inventory_listings(client, make_product, warehouse, auth_headers, today):
    make_product(name="Empty", stock=0)
    make_product(name="Low", stock=1, min_stock=3)
    make_product(name="Soon", expired_date=today + timedelta(days=10))
    make_product(name="Later", expired_date=today + timedelta(days=45))
    make_product(name="Gone", expired_date=today - timedelta(days=1))
    headers = auth_headers(warehouse)

    def names(path, **params):
        return [p["name"] for p in client.get(path, params=params, headers=headers).json()["items"]]

    assert names("/inventory/out-of-stock") == ["Empty"]
    assert names("/inventory/low-stock") == ["Low"]
    assert names("/inventory/expiring") == ["Soon"]
    assert names("/inventory/expiring", days=60) == ["Soon", "Later"]
    assert names("/inventory/expired") == ["Gone"]
    assert names("/inventory/expired", search="nothing") == []


def test_periodic_sales_reports(db, make_product):
    p = make_product(stock=50)
    _sell(db, p, 2, 1000, now=NOW)
    _sell(db, p, 1, 500, now=datetime(2026, 3, 20, 9, 0))
    _sell(db, p, 4, 250, now=datetime(2026, 7, 1, 9, 0))

    weekly = reporting.weekly_report(db, today=NOW.date())
    assert weekly["summary"] == {"sales_count": 1, "revenue": 2000.0, "items_sold": 2}
    assert weekly["filters"] == {"start_date": date(2026, 3, 2), "end_date": date(2026, 3, 8)}

    monthly = reporting.monthly_report(db, 3, 2026)
    assert monthly["summary"]["sales_count"] == 2
    assert monthly["summary"]["revenue"] == 2500.0

    yearly = reporting.yearly_report(db, 2026)
    assert yearly["summary"] == {"sales_count": 3, "revenue": 3500.0, "items_sold": 7}
    assert yearly["sales"][0]["date"] == date(2026, 7, 1)


def test_product_and_inventory_reports(db, make_category, make_product, today):
    obat = make_category("Obat Bebas")
    alkes = make_category("Alat Kesehatan")
    a = make_product(obat, name="A", stock=10, purchase_price=100)
    make_product(obat, name="B", stock=0, purchase_price=100)
    make_product(alkes, name="C", stock=5, purchase_price=1000, expired_date=today + timedelta(days=3))
    _sell(db, a, 4, 250)

    report = reporting.product_report(db)
    rows = {r["product_name"]: r for r in report["products"]}
    assert rows["A"]["total_quantity_sold"] == 4
    assert rows["A"]["total_revenue"] == 1000.0
    assert rows["A"]["stock_value"] == 600.0
    assert report["summary"]["total_stock_value"] == 5600.0

    only_alkes = reporting.product_report(db, category_id=alkes.id)
    assert [r["product_name"] for r in only_alkes["products"]] == ["C"]

    inventory = reporting.inventory_report(db, today=today)
    assert inventory["summary"]["total_products"] == 3
    assert inventory["summary"]["total_stock"] == 11
    assert inventory["summary"]["out_of_stock_count"] == 1
    assert inventory["summary"]["soon_expired_count"] == 1
    assert inventory["best_selling_products"][0]["total_sold"] == 4
    shares = {c["category_name"]: c["percentage"] for c in inventory["products_by_category"]}
    assert shares == {"Alat Kesehatan": 33.33, "Obat Bebas": 66.67}


def test_sales_csv_export(client, db, make_product, owner, auth_headers, today):
    p = make_product(stock=10)
    sale = _sell(db, p, 2, 1500, user_id=owner.id, customer="Andi")

    res = client.get(
        "/reports/sales/export",
        params={"start_date": today.isoformat(), "end_date": today.isoformat()},
        headers=auth_headers(owner),
    )
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    assert f"sales-{today.isoformat()}-{today.isoformat()}.csv" in res.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(res.text)))
    assert rows[0] == reporting.EXPORT_COLUMNS
    assert rows[1][0] == sale.invoice_number
    assert rows[1][2:6] == ["Andi", owner.name, "cash", "2"]
    assert rows[1][6] == "3000.00"


def test_reports_are_owner_only(client, owner, cashier, warehouse, auth_headers):
    for user in (cashier, warehouse):
        assert client.get("/reports/weekly", headers=auth_headers(user)).status_code == 403
    for path in ("/reports/weekly", "/reports/monthly", "/reports/yearly", "/reports/products",
                 "/reports/inventory", "/reports/staff", "/reports/activity-summary", "/reports/activity-feed"):
        assert client.get(path, headers=auth_headers(owner)).status_code == 200, path


def test_inverted_range_is_rejected(client, owner, auth_headers):
    res = client.get(
        "/reports/weekly", params={"start_date": "2026-03-10", "end_date": "2026-03-01"},
        headers=auth_headers(owner),
    )
    assert res.status_code == 422
