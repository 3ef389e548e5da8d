"""Process startup and shutdown for hosts embedding worklink."""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from worklink.core import db_client
from worklink.core.logging import configure_logfire, instrument_pydantic_ai
from worklink.core.scheduler import scheduler, start_scheduler, stop_scheduler
from worklink.services.tracking_service import TrackingSession, TrackingUpdate


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan() -> AsyncIterator[None]:
    """Configure observability, open the store and run the scheduler for the enclosed block.

    Usage:
        async with lifespan():
            ...
    """
    # Configure logging first so store initialization is captured
    configure_logfire()

    await db_client.init_db()
    logger.info("Database initialized")

    instrument_pydantic_ai()
    start_scheduler()
    try:
        yield
    finally:
        stop_scheduler()
        await db_client.close_connection()


def new_tracking_session(on_update: Callable[[TrackingUpdate], None] | None = None) -> TrackingSession:
    """Tracking session ticking on the shared scheduler."""
    return TrackingSession(on_update=on_update, scheduler=scheduler)
