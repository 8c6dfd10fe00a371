"""Health check endpoints"""
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from recipe_api.api.deps import get_recipe_store, get_token_registry
from recipe_api.config import settings
from recipe_api.exceptions import StorageUnavailableError
from recipe_api.services.token_registry import TokenRegistry
from recipe_api.storage.base import RecipeStore

router = APIRouter(prefix="/health", tags=["health"])

# Track startup time
STARTUP_TIME = time.time()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
def health_check():
    """
    Basic health check endpoint

    Returns 200 if service is running
    """
    return {
        "status": "healthy",
        "service": "Recipe API",
        "version": "1.0.0",
        "timestamp": _now()
    }


@router.get("/ready")
def readiness_check(store: RecipeStore = Depends(get_recipe_store)):
    """
    Readiness check - verifies the recipe store is reachable

    Returns 200 if ready to serve traffic, 503 if not ready
    """
    checks: Dict[str, Any] = {
        "storage": False,
        "storage_backend": settings.STORAGE_BACKEND,
        "storage_latency_ms": None
    }

    start = time.time()
    try:
        store.ping()
    except StorageUnavailableError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "checks": checks,
                "message": f"Storage check failed: {e}"
            },
        )

    checks["storage"] = True
    checks["storage_latency_ms"] = round((time.time() - start) * 1000, 2)

    return {
        "status": "ready",
        "checks": checks,
        "timestamp": _now()
    }


@router.get("/live")
def liveness_check():
    """
    Liveness check - verifies service is alive

    Returns 200 if process is alive
    """
    return {
        "status": "alive",
        "uptime_seconds": round(time.time() - STARTUP_TIME, 2),
        "timestamp": _now()
    }


@router.get("/stats")
def health_stats(
    store: RecipeStore = Depends(get_recipe_store),
    registry: TokenRegistry = Depends(get_token_registry),
):
    """
    Service statistics

    Returns:
    - Recipe count
    - Active token count
    - Uptime
    """
    try:
        total_recipes = len(store.list_recipes())
    except StorageUnavailableError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "error", "message": str(e), "timestamp": _now()},
        )

    return {
        "status": "healthy",
        "recipes": {"total": total_recipes},
        "tokens": {"active": registry.active_count()},
        "system": {
            "uptime_seconds": round(time.time() - STARTUP_TIME, 2),
            "storage_backend": settings.STORAGE_BACKEND,
            "auth_enabled": settings.AUTH_ENABLED
        },
        "timestamp": _now()
    }
