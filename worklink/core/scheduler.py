"""Shared APScheduler instance driving recurring jobs such as live tracking ticks."""

import logging
from collections.abc import Awaitable, Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger


logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


def schedule_interval(
    target: AsyncIOScheduler,
    *,
    job_id: str,
    func: Callable[[], Awaitable[None]],
    seconds: float,
) -> None:
    """Run ``func`` every ``seconds`` on the event loop, never overlapping itself."""
    target.add_job(
        func,
        trigger=IntervalTrigger(seconds=seconds),
        id=job_id,
        name=job_id,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    logger.info("Scheduled interval job %s every %.1fs", job_id, seconds)


def cancel_job(target: AsyncIOScheduler, *, job_id: str) -> bool:
    """Remove a scheduled job; returns False when it was already gone."""
    try:
        target.remove_job(job_id)
    except JobLookupError:
        return False
    logger.info("Cancelled job %s", job_id)
    return True


def start_scheduler() -> None:
    """Start the shared scheduler. Must be called from within a running event loop."""
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started successfully")


def stop_scheduler() -> None:
    """Stop the shared scheduler."""
    if scheduler.running:
        logger.info("Stopping scheduler")
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
