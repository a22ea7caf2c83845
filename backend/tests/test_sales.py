import threading
from datetime import datetime

import pytest

from database import SessionLocal
from models.product import Product
from models.sale import Sale, SaleItem
from schemas.sale import SaleCreate, SaleItemCreate
from services import sales
from services.errors import (
    BusinessRuleError, ConflictError, InvoiceNumberUnavailable, NotFoundError
)

NOW = datetime(2026, 3, 5, 10, 30)


def _payload(items, payment, method="cash", customer=None):
    return SaleCreate(
        customer_name=customer,
        payment_method=method,
        payment_amount=payment,
        items=[SaleItemCreate(product_id=pid, quantity=qty, price=price) for pid, qty, price in items],
    )


def _stock(db, product_id):
    return db.query(Product.stock).filter(Product.id == product_id).scalar()


def test_sale_total_and_change(db, make_product, cashier):
    a = make_product(selling_price=15000, stock=10)
    b = make_product(selling_price=10000, stock=5)

    sale = sales.create_sale(db, _payload([(a.id, 2, 15000), (b.id, 1, 10000)], 50000),
                             user_id=cashier.id, now=NOW)

    assert sale.total == 40000
    assert sale.change_amount == 10000
    assert sale.status == "completed"
    assert sale.user_id == cashier.id
    assert [it.subtotal for it in sale.items] == [30000, 10000]
    assert _stock(db, a.id) == 8
    assert _stock(db, b.id) == 4


def test_underpayment_is_rejected(db, make_product):
    p = make_product(stock=10)

    with pytest.raises(BusinessRuleError) as exc:
        sales.create_sale(db, _payload([(p.id, 1, 50000)], 40000), now=NOW)

    assert exc.value.status_code == 422
    assert db.query(Sale).count() == 0
    assert _stock(db, p.id) == 10


def test_invoice_numbers_follow_the_day_sequence(db, make_product):
    p = make_product(stock=10)

    first = sales.create_sale(db, _payload([(p.id, 1, 1500)], 1500), now=NOW)
    second = sales.create_sale(db, _payload([(p.id, 1, 1500)], 2000), now=NOW)
    next_day = sales.create_sale(db, _payload([(p.id, 1, 1500)], 1500), now=datetime(2026, 3, 6, 8, 0))

    assert first.invoice_number == "INV-20260305-0001"
    assert second.invoice_number == "INV-20260305-0002"
    assert next_day.invoice_number == "INV-20260306-0001"


def test_unknown_product_rolls_back_everything(db, make_product):
    p = make_product(stock=10)

    with pytest.raises(NotFoundError) as exc:
        sales.create_sale(db, _payload([(p.id, 2, 1500), (9999, 1, 1000)], 10000), now=NOW)

    assert exc.value.detail == "Product ID 9999 not found"
    assert _stock(db, p.id) == 10
    assert db.query(Sale).count() == 0
    assert db.query(SaleItem).count() == 0


def test_insufficient_stock_is_a_conflict(db, make_product):
    plenty = make_product(stock=10)
    scarce = make_product(stock=1)

    with pytest.raises(ConflictError) as exc:
        sales.create_sale(db, _payload([(plenty.id, 1, 1500), (scarce.id, 2, 1500)], 10000), now=NOW)

    assert exc.value.status_code == 409
    assert _stock(db, plenty.id) == 10
    assert _stock(db, scarce.id) == 1
    assert db.query(Sale).count() == 0


def test_concurrent_checkouts_get_distinct_numbers(db, make_product):
    p = make_product(stock=10)
    pid = p.id
    workers = 4
    barrier = threading.Barrier(workers)
    numbers, errors = [], []
    lock = threading.Lock()

    def checkout():
        session = SessionLocal()
        try:
            barrier.wait()
            sale = sales.create_sale(session, _payload([(pid, 1, 1500)], 1500), now=NOW)
            with lock:
                numbers.append(sale.invoice_number)
        except Exception as exc:  # collected for the assertion below
            with lock:
                errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=checkout) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert errors == []
    assert sorted(numbers) == [f"INV-20260305-{n:04d}" for n in range(1, workers + 1)]
    db.expire_all()
    assert _stock(db, pid) == 10 - workers


def test_gives_up_when_every_number_is_taken(db, make_product, monkeypatch):
    p = make_product(stock=10)
    taken = sales.create_sale(db, _payload([(p.id, 1, 1500)], 1500), now=NOW).invoice_number

    calls = []

    def stuck(session, now):
        calls.append(now)
        return taken

    monkeypatch.setattr(sales, "next_invoice_number", stuck)
    monkeypatch.setattr(sales, "_backoff", lambda: None)

    with pytest.raises(InvoiceNumberUnavailable) as exc:
        sales.create_sale(db, _payload([(p.id, 1, 1500)], 1500), now=NOW)

    assert exc.value.status_code == 500
    assert len(calls) == sales.settings.INVOICE_MAX_ATTEMPTS
    assert db.query(Sale).count() == 1
    assert _stock(db, p.id) == 9


def test_sales_statistics_periods(db, make_product):
    p = make_product(stock=20)
    sales.create_sale(db, _payload([(p.id, 1, 1000)], 1000), now=NOW)
    sales.create_sale(db, _payload([(p.id, 3, 1000)], 3000), now=datetime(2026, 3, 2, 9, 0))   # Monday
    sales.create_sale(db, _payload([(p.id, 2, 1000)], 2000), now=datetime(2026, 1, 15, 9, 0))

    stats = sales.sales_statistics(db, now=NOW)

    assert stats["today"] == {"count": 1, "revenue": 1000.0}
    assert stats["this_week"] == {"count": 2, "revenue": 4000.0}
    assert stats["this_month"] == {"count": 2, "revenue": 4000.0}
    assert stats["this_year"] == {"count": 3, "revenue": 6000.0}
    assert stats["average_sale_value"] == 2000.0


# -------- API --------

def _sale_body(product_id, qty=1, price=1500, payment=5000):
    return {
        "customer_name": "Budi",
        "payment_method": "cash",
        "payment_amount": payment,
        "items": [{"product_id": product_id, "quantity": qty, "price": price}],
    }


def test_cashier_can_check_out(client, db, make_product, cashier, auth_headers):
    p = make_product(stock=5)

    res = client.post("/sales", json=_sale_body(p.id, qty=2), headers=auth_headers(cashier))

    assert res.status_code == 201
    body = res.json()
    assert body["invoice_number"].startswith("INV-")
    assert body["total"] == 3000
    assert body["change_amount"] == 2000
    assert body["items"][0]["product_code"] == p.code
    assert _stock(db, p.id) == 3


def test_checkout_errors_map_to_status_codes(client, make_product, cashier, auth_headers):
    p = make_product(stock=1)
    headers = auth_headers(cashier)

    assert client.post("/sales", json=_sale_body(p.id, payment=100), headers=headers).status_code == 422
    assert client.post("/sales", json=_sale_body(p.id, qty=3, payment=10000), headers=headers).status_code == 409
    res = client.post("/sales", json=_sale_body(4242), headers=headers)
    assert res.status_code == 404
    assert res.json()["detail"] == "Product ID 4242 not found"


def test_empty_cart_is_invalid(client, cashier, auth_headers):
    body = {"payment_method": "cash", "payment_amount": 0, "items": []}
    assert client.post("/sales", json=body, headers=auth_headers(cashier)).status_code == 422


def test_sales_listing_is_for_managers(client, make_product, owner, warehouse, cashier, auth_headers):
    p = make_product(stock=5)
    client.post("/sales", json=_sale_body(p.id), headers=auth_headers(cashier))

    assert client.get("/sales", headers=auth_headers(warehouse)).status_code == 403
    assert client.get("/sales", headers=auth_headers(cashier)).status_code == 403

    res = client.get("/sales", headers=auth_headers(owner))
    assert res.status_code == 200
    assert res.json()["total"] == 1

    res = client.get("/sales", params={"search": "budi"}, headers=auth_headers(owner))
    assert res.json()["total"] == 1

    stats = client.get("/sales/stats", headers=auth_headers(owner)).json()
    assert stats["today"]["count"] == 1


def test_invoice_pdf_download(client, make_product, cashier, auth_headers):
    p = make_product(stock=5)
    sale = client.post("/sales", json=_sale_body(p.id), headers=auth_headers(cashier)).json()

    res = client.get(f"/sales/{sale['id']}/invoice-pdf", headers=auth_headers(cashier))

    assert res.status_code == 200
    assert res.headers["content-type"] == "application/pdf"
    assert res.content.startswith(b"%PDF")
    assert f"Invoice-{sale['invoice_number']}.pdf" in res.headers["content-disposition"]


def test_missing_sale_is_404(client, owner, auth_headers):
    assert client.get("/sales/999", headers=auth_headers(owner)).status_code == 404
