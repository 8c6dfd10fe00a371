"""Middleware modules for production-ready features"""
from recipe_api.middleware.monitoring import (
    MonitoringMiddleware,
    record_auth_failure,
    record_storage_error,
)
from recipe_api.middleware.rate_limit import get_rate_limit, limiter

__all__ = [
    "MonitoringMiddleware",
    "record_auth_failure",
    "record_storage_error",
    "limiter",
    "get_rate_limit",
]
