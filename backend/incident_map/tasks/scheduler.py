"""Background task scheduler for dataset refreshes."""

import logging
from datetime import UTC, datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from incident_map.config import get_settings
from incident_map.dataset import get_store
from incident_map.websocket.manager import manager as ws_manager

logger = logging.getLogger(__name__)
settings = get_settings()

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


async def reload_dataset_job() -> None:
    """Background job to pick up a regenerated dataset file and refresh clients."""
    try:
        store = get_store()
        if store.reload_if_changed():
            dataset = store.current
            logger.info(
                f"Dataset reloaded: version {dataset.version}, {len(dataset.incidents)} incidents"
            )
            if ws_manager.connection_count > 0:
                await ws_manager.refresh_all()
    except Exception as e:
        logger.error(f"Dataset reload failed: {e}", exc_info=True)


def setup_scheduler() -> AsyncIOScheduler | None:
    """Set up and start the background task scheduler."""
    global scheduler

    if settings.dataset_reload_interval_minutes <= 0:
        logger.info("Dataset reload job disabled")
        return None

    scheduler = AsyncIOScheduler()
    now = datetime.now(UTC)

    scheduler.add_job(
        reload_dataset_job,
        trigger=IntervalTrigger(minutes=settings.dataset_reload_interval_minutes),
        next_run_time=now + timedelta(minutes=settings.dataset_reload_interval_minutes),
        id="reload_dataset",
        name="Reload incident dataset when the file changes",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Scheduler started")

    return scheduler


def shutdown_scheduler() -> None:
    """Shut down the scheduler gracefully."""
    global scheduler

    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")
        scheduler = None
