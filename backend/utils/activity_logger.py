# backend/utils/activity_logger.py
import logging
from typing import Callable, Optional

from fastapi.routing import APIRoute
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.routing import Match

from config import settings
from database import SessionLocal
from services import activity
from utils.cache import KeyValueCache

logger = logging.getLogger(__name__)


def _matched_route(request: Request):
    """(APIRoute, path_params) for the request, or (None, {}) for static files, docs and 404s."""
    route = request.scope.get("route")
    if isinstance(route, APIRoute):
        return route, request.scope.get("path_params") or {}

    for candidate in request.app.router.routes:
        if not isinstance(candidate, APIRoute):
            continue
        match, child_scope = candidate.matches(request.scope)
        if match == Match.FULL:
            return candidate, child_scope.get("path_params") or {}
    return None, {}


class ActivityLoggerMiddleware(BaseHTTPMiddleware):
    """
    Appends an ActivityLog row for qualifying authenticated requests after the
    response is produced. Never changes the response: failures end up in the
    operational log only.
    """

    def __init__(self, app, cache: KeyValueCache, session_factory: Optional[Callable] = None,
                 dedup_seconds: Optional[float] = None):
        super().__init__(app)
        self.cache = cache
        self.session_factory = session_factory or SessionLocal
        self.dedup_seconds = settings.ACTIVITY_DEDUP_SECONDS if dedup_seconds is None else dedup_seconds

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        try:
            await run_in_threadpool(self._log, request)
        except Exception:
            logger.exception("Failed to log activity for %s %s", request.method, request.url.path)
        return response

    def _log(self, request: Request) -> None:
        route, path_params = _matched_route(request)
        if route is None:
            return

        descriptor = activity.RouteDescriptor.from_route(
            route, request.method, request.url.path, path_params
        )
        user_id = getattr(request.state, "user_id", None)
        uri = request.url.path + (f"?{request.url.query}" if request.url.query else "")
        if not activity.should_log(descriptor, user_id, uri, self.cache, self.dedup_seconds):
            return

        db = self.session_factory()
        try:
            activity.record(
                db,
                user_id=user_id,
                route=descriptor,
                ip=request.client.host if request.client else None,
                user_agent=request.headers.get("user-agent"),
                query_params=request.query_params,
                body_size=int(request.headers.get("content-length") or 0),
            )
        finally:
            db.close()
