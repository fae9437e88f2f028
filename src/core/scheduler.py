"""Optional in-process scheduler for the overdue sweep.

Production deployments usually trigger the sweep over HTTP from an external
cron; setting ENABLE_SCHEDULER=true runs the same job inside the app instead.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from src.core.config import settings
from src.core.db_client import DatabaseError
from src.services.overdue_sweep import run_overdue_sweep


logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "overdue_sweep"

# Global scheduler instance
scheduler = AsyncIOScheduler()


async def run_scheduled_sweep() -> None:
    """Scheduler entry point; failures are logged, never raised into APScheduler."""
    logger.info("Running scheduled overdue sweep")
    try:
        result = await run_overdue_sweep()
    except DatabaseError as e:
        logger.error("scheduled_sweep_query_failed", extra={"error": str(e)})
        return

    logger.info(
        "scheduled_sweep_completed",
        extra={"sent_count": result.sentCount, "errors": result.errors or []},
    )


def start_scheduler() -> None:
    """Register the sweep job and start the scheduler when enabled.

    This should be called during FastAPI app startup.
    """
    if not settings.enable_scheduler:
        logger.info("In-process scheduler disabled")
        return

    scheduler.add_job(
        run_scheduled_sweep,
        trigger=CronTrigger.from_crontab(settings.overdue_sweep_cron, timezone=settings.app_timezone),
        id=SWEEP_JOB_ID,
        name="Send Overdue Todo Digests",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler started", extra={"cron": settings.overdue_sweep_cron, "timezone": settings.app_timezone})


def stop_scheduler() -> None:
    """Stop the scheduler if it is running.

    This should be called during FastAPI app shutdown.
    """
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Scheduler stopped")
