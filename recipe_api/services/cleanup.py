"""
Background Task: Expired Token Cleanup

Periodically purges expired tokens from the TokenRegistry so that clients
which never log out cannot grow the registry without bound. Runs as an
APScheduler background job owned by the application lifespan.

Usage:
    scheduler = start_token_cleanup_scheduler(registry, interval_minutes=60)
    # ... app runs ...
    stop_token_cleanup_scheduler(scheduler)
"""
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from recipe_api.middleware.monitoring import active_tokens_gauge
from recipe_api.services.token_registry import TokenRegistry
from recipe_api.utils.logger import logger

JOB_ID = "token_cleanup"


def cleanup_expired_tokens(registry: TokenRegistry) -> int:
    """Purge expired tokens once and publish the active count."""
    removed = registry.purge_expired()
    active = registry.active_count()
    active_tokens_gauge.set(active)

    logger.info(
        f"Cleaned up expired tokens. Active tokens: {active}",
        extra={"count": removed, "action": "token_cleanup"},
    )
    return removed


def _run_cleanup(registry: TokenRegistry) -> None:
    # A failed run must not unschedule the job; the next tick retries
    try:
        cleanup_expired_tokens(registry)
    except Exception:
        logger.error("Token cleanup failed", extra={"action": "token_cleanup"}, exc_info=True)


def start_token_cleanup_scheduler(registry: TokenRegistry, interval_minutes: int = 60) -> BackgroundScheduler:
    """
    Start the background scheduler for token cleanup.

    Args:
        registry: TokenRegistry whose expired entries are purged
        interval_minutes: Cleanup interval in minutes (default: 60)

    Returns:
        The running BackgroundScheduler
    """
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        func=_run_cleanup,
        args=[registry],
        trigger=IntervalTrigger(minutes=interval_minutes),
        id=JOB_ID,
        name="Purge expired bearer tokens",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info(f"Token cleanup scheduler started (interval: {interval_minutes} minutes)")
    return scheduler


def stop_token_cleanup_scheduler(scheduler: Optional[BackgroundScheduler]) -> None:
    if scheduler is None or not scheduler.running:
        return
    scheduler.shutdown(wait=True)
    logger.info("Token cleanup scheduler stopped")
