"""Request metrics, request ids and auth/storage failure counters"""
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Gauge, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from recipe_api.utils.logger import logger

SLOW_REQUEST_SECONDS = 1.0


# ===== Prometheus Metrics =====

http_requests_total = Counter(
    "recipe_api_http_requests_total",
    "Requests handled, by route and status",
    ["method", "route", "status"]
)

http_request_duration_seconds = Histogram(
    "recipe_api_http_request_duration_seconds",
    "Request handling time in seconds",
    ["method", "route"]
)

authentication_failures_total = Counter(
    "recipe_api_authentication_failures_total",
    "Rejected logins and rejected bearer tokens",
    ["type"]  # login, token
)

storage_errors_total = Counter(
    "recipe_api_storage_errors_total",
    "Recipe store operations that failed with the backend unavailable",
    ["backend"]  # json, database
)

active_tokens_gauge = Gauge(
    "recipe_api_active_tokens",
    "Bearer tokens currently held by the registry"
)


def _route_label(request: Request) -> str:
    # Templated path keeps recipe ids out of label values
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and record its latency and status"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            http_requests_total.labels(method=request.method, route=_route_label(request), status=500).inc()
            logger.error(
                f"Unhandled error on {request.method} {request.url.path}",
                extra={"request_id": request_id},
                exc_info=True,
            )
            raise

        elapsed = time.perf_counter() - started
        route = _route_label(request)
        http_requests_total.labels(method=request.method, route=route, status=response.status_code).inc()
        http_request_duration_seconds.labels(method=request.method, route=route).observe(elapsed)

        # File-backed storage latency grows with the collection size
        if elapsed > SLOW_REQUEST_SECONDS:
            logger.warning(
                f"Slow request: {request.method} {route} took {elapsed:.2f}s",
                extra={"request_id": request_id, "action": "slow_request"},
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed:.3f}s"
        return response


def record_auth_failure(auth_type: str) -> None:
    authentication_failures_total.labels(type=auth_type).inc()


def record_storage_error(backend: str) -> None:
    storage_errors_total.labels(backend=backend).inc()
