"""
APScheduler-based periodic sweep for due notifications.

The core does not need a timer: POST /notifications/send triggers the same
sweep. This job is an optional in-process trigger, started from the FastAPI
lifespan when NOTIFICATION_SWEEP_MINUTES is set.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "notification_sweep"

_scheduler: AsyncIOScheduler | None = None


async def _run_sweep() -> None:
    """Job function: deliver notifications whose scheduled date has passed."""
    # Import here to avoid circular imports
    from core.notifications.dispatcher import send_pending_notifications

    try:
        summary = await send_pending_notifications(due_only=True)
    except Exception as e:
        logger.error(f"Scheduled notification sweep failed: {e}")
        return

    if summary["processed"]:
        logger.info(f"Scheduled notification sweep: {summary}")


def init_scheduler(interval_minutes: int) -> AsyncIOScheduler:
    """
    Initialize and start the scheduler with the sweep job.

    Call this during app startup (in FastAPI lifespan).
    """
    global _scheduler

    if _scheduler is not None:
        return _scheduler

    _scheduler = AsyncIOScheduler(
        job_defaults={
            "coalesce": True,  # Combine missed runs into one
            "max_instances": 1,  # Never overlap two sweeps
            "misfire_grace_time": 300,
        },
    )
    _scheduler.add_job(
        _run_sweep,
        trigger="interval",
        minutes=interval_minutes,
        id=SWEEP_JOB_ID,
        replace_existing=True,
    )
    _scheduler.start()
    logger.info(f"Notification sweep scheduled every {interval_minutes} minutes")
    return _scheduler


def shutdown_scheduler() -> None:
    """
    Shutdown the scheduler gracefully.

    Call this during app shutdown.
    """
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Notification scheduler stopped")


def get_scheduler() -> AsyncIOScheduler | None:
    return _scheduler
