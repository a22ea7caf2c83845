from types import SimpleNamespace

import pytest

from models.log import ActivityLog
from services import activity
from services.activity import ActivityType, Resource, RouteDescriptor


def _route(method, resource, endpoint="", path="/x"):
    return RouteDescriptor(method=method, resource=resource, endpoint=endpoint, path=path)


@pytest.mark.parametrize("route,expected", [
    (_route("POST", Resource.AUTH, "login"), ActivityType.LOGIN),
    (_route("POST", Resource.AUTH, "logout"), ActivityType.LOGOUT),
    (_route("POST", Resource.SALE, "create_sale"), ActivityType.SALE_CREATE),
    (_route("GET", Resource.SALE, "list_sales"), ActivityType.SALE_VIEW),
    (_route("PUT", Resource.PRODUCT, "update_product"), ActivityType.PRODUCT_UPDATE),
    (_route("PATCH", Resource.CATEGORY, "update_category"), ActivityType.CATEGORY_UPDATE),
    (_route("DELETE", Resource.SUPPLIER, "delete_supplier"), ActivityType.SUPPLIER_DELETE),
    (_route("POST", Resource.USER, "register"), ActivityType.USER_CREATE),
    (_route("GET", Resource.REPORT, "export_sales"), ActivityType.EXPORT),
    (_route("GET", Resource.REPORT, "weekly_report"), ActivityType.REPORT_VIEW),
    (_route("GET", Resource.DASHBOARD, "get_dashboard"), ActivityType.DASHBOARD_VIEW),
    (_route("GET", Resource.INVENTORY, "low_stock"), ActivityType.VIEW),
    (_route("POST", None, "something"), ActivityType.CREATE),
])
def test_classify(route, expected):
    assert activity.classify(route) is expected


def test_descriptions():
    route = _route("GET", Resource.INVENTORY, "low_stock", path="/inventory/low-stock")
    assert activity.describe(ActivityType.SALE_CREATE, route) == "Created new sale"
    assert activity.describe(ActivityType.VIEW, route) == "Performed view action on /inventory/low-stock"


def test_descriptor_takes_resource_from_router_tag():
    route = SimpleNamespace(tags=["Sales"], name="create_sale")
    d = RouteDescriptor.from_route(route, "post", "/sales", {"sale_id": 3})
    assert d.method == "POST"
    assert d.resource is Resource.SALE
    assert d.endpoint == "create_sale"
    assert d.path_params == {"sale_id": 3}

    untagged = RouteDescriptor.from_route(SimpleNamespace(tags=[], name="read_root"), "GET", "/")
    assert untagged.resource is None


def test_should_log_deduplicates_gets(cache, clock):
    get = _route("GET", Resource.PRODUCT, "list_products")

    assert activity.should_log(get, 1, "/products?page=1", cache, 30) is True
    assert activity.should_log(get, 1, "/products?page=1", cache, 30) is False
    # another user, another URI
    assert activity.should_log(get, 2, "/products?page=1", cache, 30) is True
    assert activity.should_log(get, 1, "/products?page=2", cache, 30) is True

    clock.advance(29)
    assert activity.should_log(get, 1, "/products?page=1", cache, 30) is False
    clock.advance(2)
    assert activity.should_log(get, 1, "/products?page=1", cache, 30) is True


def test_should_log_skips_anonymous_and_never_dedupes_writes(cache):
    post = _route("POST", Resource.SALE, "create_sale")
    assert activity.should_log(post, None, "/sales", cache, 30) is False
    assert activity.should_log(post, 1, "/sales", cache, 30) is True
    assert activity.should_log(post, 1, "/sales", cache, 30) is True


def test_request_data_keeps_safe_query_params_only():
    route = RouteDescriptor("GET", Resource.PRODUCT, "list_products", "/products", {"x": 1})
    data = activity.request_data(route, {"search": "para", "page": "2", "token": "secret"}, 0)
    assert data == {
        "route_name": "list_products",
        "route_parameters": {"x": 1},
        "query_params": {"search": "para", "page": "2"},
        "method": "GET",
        "request_size": 0,
    }


# -------- middleware --------

def _logs(db, **filters):
    db.expire_all()
    return db.query(ActivityLog).filter_by(**filters).order_by(ActivityLog.id.asc()).all()


def test_login_and_logout_are_logged(client, db, owner, auth_headers, password):
    res = client.post("/login", json={"email": owner.email, "password": password})
    assert res.status_code == 200

    res = client.post("/logout", headers=auth_headers(owner))
    assert res.status_code == 204

    types = [log.activity_type for log in _logs(db, user_id=owner.id)]
    assert types == ["login", "logout"]


def test_failed_login_is_not_logged(client, db, owner):
    res = client.post("/login", json={"email": owner.email, "password": "wrong-password"})
    assert res.status_code == 401
    assert _logs(db) == []


def test_repeated_get_is_logged_once_per_window(client, db, clock, warehouse, auth_headers):
    headers = auth_headers(warehouse)

    client.get("/products", headers=headers)
    client.get("/products", headers=headers)
    assert len(_logs(db, activity_type="product_view")) == 1

    clock.advance(31)
    client.get("/products", headers=headers)
    assert len(_logs(db, activity_type="product_view")) == 2


def test_write_request_row_contents(client, db, warehouse, auth_headers):
    res = client.post(
        "/categories", json={"name": "Obat Herbal"},
        headers={**auth_headers(warehouse), "User-Agent": "pos-terminal/1.0"},
    )
    assert res.status_code == 201

    [log] = _logs(db, activity_type="category_create")
    assert log.user_id == warehouse.id
    assert log.description == "Created new category"
    assert log.user_agent == "pos-terminal/1.0"
    assert log.data["method"] == "POST"
    assert log.data["route_name"] == "create_category"
    assert log.data["request_size"] > 0


def test_query_params_are_filtered(client, db, warehouse, auth_headers):
    client.get("/products", params={"search": "para", "token": "secret"}, headers=auth_headers(warehouse))
    [log] = _logs(db, activity_type="product_view")
    assert log.data["query_params"] == {"search": "para"}


def test_unauthenticated_and_unknown_paths_are_skipped(client, db, owner, auth_headers):
    assert client.get("/products").status_code in (401, 403)
    assert client.get("/no-such-page", headers=auth_headers(owner)).status_code == 404
    assert _logs(db) == []


def test_logging_failure_never_breaks_the_response(client, db, warehouse, auth_headers, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("log store unavailable")

    monkeypatch.setattr(activity, "record", broken)

    res = client.get("/products", headers=auth_headers(warehouse))
    assert res.status_code == 200
    assert _logs(db) == []


def test_logs_endpoint(client, db, owner, cashier, auth_headers, password):
    client.post("/login", json={"email": owner.email, "password": password})
    client.post("/login", json={"email": cashier.email, "password": password})

    res = client.get("/logs", params={"activity_type": "login"}, headers=auth_headers(owner))
    assert res.status_code == 200
    body = res.json()
    assert body["total"] == 2
    assert {item["user_name"] for item in body["items"]} == {owner.name, cashier.name}

    res = client.get("/logs", params={"user_id": cashier.id, "activity_type": "login"}, headers=auth_headers(owner))
    assert res.json()["total"] == 1

    assert client.get("/logs", headers=auth_headers(cashier)).status_code == 403
