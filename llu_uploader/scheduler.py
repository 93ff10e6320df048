"""Background job scheduler.

APScheduler-based interval job that runs the sync pipeline.
"""

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from llu_uploader.sync import SyncPipeline

logger = logging.getLogger(__name__)

SYNC_JOB_ID = "llu_sync"


async def run_sync_job(pipeline: SyncPipeline) -> None:
    """Run one sync cycle, logging anything the pipeline did not handle."""
    try:
        cycle = await pipeline.run_cycle()
        logger.debug(
            "Sync cycle finished",
            extra={
                "cycle_id": cycle.cycle_id,
                "status": cycle.status.value,
                "stats": cycle.stats.model_dump(),
            },
        )
    except Exception:
        logger.exception("Unexpected error in sync cycle")


def start_scheduler(pipeline: SyncPipeline, interval_minutes: int) -> AsyncIOScheduler:
    """Start the background job scheduler.

    The first cycle runs immediately. `max_instances=1` makes APScheduler
    skip a tick while the previous cycle is still running.

    Returns:
        The started scheduler instance
    """
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_sync_job,
        trigger=IntervalTrigger(minutes=interval_minutes),
        args=[pipeline],
        id=SYNC_JOB_ID,
        name="LibreLink Up to Nightscout sync",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        next_run_time=datetime.now(timezone.utc),
    )
    scheduler.start()
    logger.info(
        "Scheduled LibreLink Up sync job",
        extra={"interval_minutes": interval_minutes},
    )
    return scheduler


def stop_scheduler(scheduler: AsyncIOScheduler) -> None:
    """Stop the background job scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
