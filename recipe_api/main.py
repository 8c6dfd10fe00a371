"""FastAPI application entry point"""
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded

from recipe_api.api import auth, health, recipes
from recipe_api.config import settings
from recipe_api.database import dispose_engine, get_session_factory
from recipe_api.exceptions import NotFoundError, RecipeValidationError, StorageUnavailableError
from recipe_api.middleware.monitoring import record_storage_error
from recipe_api.middleware.rate_limit import limiter
from recipe_api.services.cleanup import start_token_cleanup_scheduler, stop_token_cleanup_scheduler
from recipe_api.services.credentials import build_credential_store
from recipe_api.services.token_registry import TokenRegistry
from recipe_api.storage import build_recipe_store
from recipe_api.utils.logger import logger, setup_logging

# Setup logging
setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    uses_database = "database" in (settings.STORAGE_BACKEND, settings.CREDENTIALS_BACKEND)
    session_factory = get_session_factory() if uses_database else None

    app.state.recipe_store = build_recipe_store(settings, session_factory)
    app.state.credential_store = build_credential_store(settings, session_factory)
    app.state.token_registry = TokenRegistry(ttl=timedelta(hours=settings.TOKEN_EXPIRY_HOURS))
    scheduler = start_token_cleanup_scheduler(
        app.state.token_registry,
        interval_minutes=settings.TOKEN_CLEANUP_INTERVAL_MINUTES,
    )

    logger.info("Recipe API starting up", extra={"backend": settings.STORAGE_BACKEND})
    yield

    # Shutdown
    stop_token_cleanup_scheduler(scheduler)
    app.state.token_registry.clear()
    dispose_engine()
    logger.info("Recipe API shutting down")


# Create FastAPI app
app = FastAPI(
    title="Recipe API",
    description="A REST API for managing recipes with bearer-token authentication",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ===== Middleware Setup =====

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Monitoring middleware
if settings.METRICS_ENABLED:
    from recipe_api.middleware.monitoring import MonitoringMiddleware
    app.add_middleware(MonitoringMiddleware)

    # Prometheus metrics
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics", "/health", "/health/ready", "/health/live"],
        inprogress_name="recipe_api_requests_inprogress",
        inprogress_labels=True
    )
    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint=settings.METRICS_PATH, include_in_schema=False)

# Rate limiting
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(
        "Rate limit exceeded",
        extra={"action": "rate_limited", "request_id": getattr(request.state, "request_id", None)},
    )
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please try again later.",
            "detail": str(exc.detail)
        }
    )

# ===== Route Setup =====

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(recipes.router)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "service": "Recipe API",
        "version": "1.0.0",
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
        "storage_backend": settings.STORAGE_BACKEND,
        "metrics": settings.METRICS_PATH if settings.METRICS_ENABLED else None
    }


# ===== Error Handlers =====

def _error_list(exc: RequestValidationError) -> list:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(RecipeValidationError)
async def recipe_validation_handler(request: Request, exc: RecipeValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": f"Validation error: {exc}", "field": exc.field},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are a client error (400), never partially applied"""
    return JSONResponse(
        status_code=400,
        content={"detail": "Validation error", "errors": _error_list(exc)},
    )


@app.exception_handler(StorageUnavailableError)
async def storage_unavailable_handler(request: Request, exc: StorageUnavailableError):
    backend = exc.backend or "unknown"
    record_storage_error(backend)
    logger.error(
        f"Storage unavailable: {exc}",
        extra={"request_id": getattr(request.state, "request_id", None), "backend": backend},
    )
    return JSONResponse(
        status_code=503,
        content={
            "error": "storage_unavailable",
            "message": "Recipe storage is currently unavailable."
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for uncaught errors"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={"request_id": getattr(request.state, "request_id", None)},
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please contact support."
        }
    )