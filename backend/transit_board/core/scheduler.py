"""APScheduler setup for periodic tasks."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from transit_board.core.errors import NoticeStoreError

logger = logging.getLogger(__name__)


async def keep_store_alive(store) -> bool:
    """Ping the notices store so a hosted database is not paused for inactivity."""
    try:
        await store.ping()
    except NoticeStoreError:
        logger.warning("Keep-alive ping to notice store failed")
        return False
    logger.info("Keep-alive ping to notice store succeeded")
    return True


def create_scheduler(store) -> AsyncIOScheduler:
    """Create and configure the scheduler with all jobs."""
    from transit_board.config import settings

    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        keep_store_alive,
        "interval",
        args=[store],
        hours=settings.keepalive_interval_hours,
        id="store_keepalive",
        name="Ping the notices store",
        max_instances=1,
    )

    return scheduler
