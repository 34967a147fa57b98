"""
Maintenance scheduler (APScheduler)

Runs the maintenance sweep on a fixed interval inside the application's
event loop.

Usage:
    from infrastructure.scheduler import start_scheduler, shutdown_scheduler

    # in the FastAPI lifespan
    start_scheduler(maintenance_service.run)
    ...
    shutdown_scheduler()
"""
from typing import Awaitable, Callable, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from infrastructure.config import settings

logger = structlog.get_logger(__name__)

MAINTENANCE_JOB_ID = "maintenance_sweep"

_scheduler: Optional[AsyncIOScheduler] = None


def build_maintenance_job(sweep: Callable[[], Awaitable[object]]) -> Callable[[], Awaitable[None]]:
    """Wrap the sweep so one failed tick is logged and the next tick still runs"""

    async def maintenance_job() -> None:
        try:
            await sweep()
        except Exception:
            logger.exception("maintenance.sweep.failed")

    return maintenance_job


def start_scheduler(
    sweep: Callable[[], Awaitable[object]],
    interval_minutes: Optional[int] = None
) -> AsyncIOScheduler:
    """Start the interval job; a second call keeps the running scheduler"""
    global _scheduler

    if _scheduler is not None:
        logger.warning("scheduler.already_running")
        return _scheduler

    interval_minutes = interval_minutes or settings.MAINTENANCE_INTERVAL_MINUTES
    _scheduler = AsyncIOScheduler()
    _scheduler.add_job(
        build_maintenance_job(sweep),
        trigger=IntervalTrigger(minutes=interval_minutes),
        id=MAINTENANCE_JOB_ID,
        name="Notification delivery + reservation expiry",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    _scheduler.start()

    logger.info(
        "scheduler.started",
        job=MAINTENANCE_JOB_ID,
        interval_minutes=interval_minutes,
        next_run=str(_scheduler.get_job(MAINTENANCE_JOB_ID).next_run_time),
    )
    return _scheduler


def shutdown_scheduler() -> None:
    global _scheduler

    if _scheduler is None:
        return

    _scheduler.shutdown(wait=False)
    _scheduler = None
    logger.info("scheduler.stopped")


def get_scheduler() -> Optional[AsyncIOScheduler]:
    return _scheduler
