# backend/services/activity.py
import hashlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from models.log import ActivityLog
from utils.cache import KeyValueCache

logger = logging.getLogger(__name__)

SAFE_QUERY_PARAMS = ("page", "per_page", "sort", "order", "filter", "search", "category", "status")


class Resource(str, Enum):
    AUTH = "auth"
    SALE = "sale"
    PRODUCT = "product"
    CATEGORY = "category"
    USER = "user"
    SUPPLIER = "supplier"
    REPORT = "report"
    DASHBOARD = "dashboard"
    INVENTORY = "inventory"
    LOG = "log"


# Router tag -> resource
RESOURCE_BY_TAG = {
    "Auth": Resource.AUTH,
    "Sales": Resource.SALE,
    "Products": Resource.PRODUCT,
    "Categories": Resource.CATEGORY,
    "Users": Resource.USER,
    "Suppliers": Resource.SUPPLIER,
    "Reports": Resource.REPORT,
    "Dashboard": Resource.DASHBOARD,
    "Inventory": Resource.INVENTORY,
    "Logs": Resource.LOG,
}

CRUD_RESOURCES = (Resource.SALE, Resource.PRODUCT, Resource.CATEGORY, Resource.USER, Resource.SUPPLIER)


class ActivityType(str, Enum):
    LOGIN = "login"
    LOGOUT = "logout"
    DASHBOARD_VIEW = "dashboard_view"
    SALE_CREATE = "sale_create"
    SALE_UPDATE = "sale_update"
    SALE_DELETE = "sale_delete"
    SALE_VIEW = "sale_view"
    PRODUCT_CREATE = "product_create"
    PRODUCT_UPDATE = "product_update"
    PRODUCT_DELETE = "product_delete"
    PRODUCT_VIEW = "product_view"
    CATEGORY_CREATE = "category_create"
    CATEGORY_UPDATE = "category_update"
    CATEGORY_DELETE = "category_delete"
    CATEGORY_VIEW = "category_view"
    USER_CREATE = "user_create"
    USER_UPDATE = "user_update"
    USER_DELETE = "user_delete"
    USER_VIEW = "user_view"
    SUPPLIER_CREATE = "supplier_create"
    SUPPLIER_UPDATE = "supplier_update"
    SUPPLIER_DELETE = "supplier_delete"
    SUPPLIER_VIEW = "supplier_view"
    REPORT_VIEW = "report_view"
    EXPORT = "export"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    VIEW = "view"


DESCRIPTIONS = {
    ActivityType.LOGIN: "User logged in",
    ActivityType.LOGOUT: "User logged out",
    ActivityType.DASHBOARD_VIEW: "Viewed dashboard",
    ActivityType.SALE_CREATE: "Created new sale",
    ActivityType.SALE_UPDATE: "Updated sale",
    ActivityType.SALE_DELETE: "Deleted sale",
    ActivityType.SALE_VIEW: "Viewed sales page",
    ActivityType.PRODUCT_CREATE: "Created new product",
    ActivityType.PRODUCT_UPDATE: "Updated product",
    ActivityType.PRODUCT_DELETE: "Deleted product",
    ActivityType.PRODUCT_VIEW: "Viewed products page",
    ActivityType.CATEGORY_CREATE: "Created new category",
    ActivityType.CATEGORY_UPDATE: "Updated category",
    ActivityType.CATEGORY_DELETE: "Deleted category",
    ActivityType.CATEGORY_VIEW: "Viewed categories page",
    ActivityType.USER_CREATE: "Created new user",
    ActivityType.USER_UPDATE: "Updated user",
    ActivityType.USER_DELETE: "Deleted user",
    ActivityType.USER_VIEW: "Viewed users page",
    ActivityType.SUPPLIER_CREATE: "Created new supplier",
    ActivityType.SUPPLIER_UPDATE: "Updated supplier",
    ActivityType.SUPPLIER_DELETE: "Deleted supplier",
    ActivityType.SUPPLIER_VIEW: "Viewed suppliers page",
    ActivityType.REPORT_VIEW: "Viewed report",
    ActivityType.EXPORT: "Exported data",
}

# Endpoint (route) names that hand out files from the reports area
EXPORT_ENDPOINT_PREFIXES = ("export_", "download_")


@dataclass(frozen=True)
class RouteDescriptor:
    """What the activity logger knows about a matched API route."""
    method: str
    resource: Optional[Resource]
    endpoint: str
    path: str
    path_params: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_route(cls, route, method: str, path: str, path_params: Optional[Mapping] = None):
        tags = [t for t in (getattr(route, "tags", None) or []) if t in RESOURCE_BY_TAG]
        return cls(
            method=method.upper(),
            resource=RESOURCE_BY_TAG[tags[0]] if tags else None,
            endpoint=getattr(route, "name", "") or "",
            path=path,
            path_params=dict(path_params or {}),
        )


def _verb(method: str) -> str:
    if method == "POST":
        return "create"
    if method in ("PUT", "PATCH"):
        return "update"
    if method == "DELETE":
        return "delete"
    return "view"


def classify(route: RouteDescriptor) -> ActivityType:
    verb = _verb(route.method)

    if route.resource is Resource.AUTH:
        if route.endpoint == "login" and route.method == "POST":
            return ActivityType.LOGIN
        if route.endpoint == "logout":
            return ActivityType.LOGOUT
    elif route.resource in CRUD_RESOURCES:
        return ActivityType(f"{route.resource.value}_{verb}")
    elif route.resource is Resource.REPORT:
        if route.endpoint.startswith(EXPORT_ENDPOINT_PREFIXES):
            return ActivityType.EXPORT
        return ActivityType.REPORT_VIEW
    elif route.resource is Resource.DASHBOARD:
        return ActivityType.DASHBOARD_VIEW

    return ActivityType(verb)


def describe(activity_type: ActivityType, route: RouteDescriptor) -> str:
    text = DESCRIPTIONS.get(activity_type)
    if text:
        return text
    return f"Performed {activity_type.value} action on {route.path}"


def dedupe_key(user_id: int, uri: str) -> str:
    return f"activity_log_{user_id}_{hashlib.md5(uri.encode('utf-8')).hexdigest()}"


def should_log(route: RouteDescriptor, user_id: Optional[int], uri: str,
               cache: KeyValueCache, window_seconds: float) -> bool:
    """
    Authenticated requests only. A GET repeated by the same user on the same
    URI (path and query string) inside the window is dropped; the first one
    opens the window.
    """
    if user_id is None:
        return False
    if route.method == "GET":
        key = dedupe_key(user_id, uri)
        if cache.has(key):
            return False
        cache.set(key, True, window_seconds)
    return True


def request_data(route: RouteDescriptor, query_params: Mapping[str, str], body_size: int) -> dict:
    data: Dict[str, Any] = {
        "route_name": route.endpoint,
        "route_parameters": route.path_params,
    }
    safe = {k: query_params[k] for k in SAFE_QUERY_PARAMS if k in query_params}
    if safe:
        data["query_params"] = safe
    data["method"] = route.method
    data["request_size"] = body_size
    return data


def record(db: Session, *, user_id: int, route: RouteDescriptor, ip: Optional[str],
           user_agent: Optional[str], query_params: Mapping[str, str], body_size: int) -> ActivityLog:
    activity_type = classify(route)
    entry = ActivityLog(
        user_id=user_id,
        activity_type=activity_type.value,
        description=describe(activity_type, route),
        ip_address=ip,
        user_agent=user_agent,
        data=request_data(route, query_params, body_size),
    )
    db.add(entry)
    db.commit()
    return entry
