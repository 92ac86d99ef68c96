import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from idle_reaper.core.cleanup_function import run_cleanup_cycle
from idle_reaper.core.config import CLEANUP_INTERVAL, IDLE_THRESHOLD
from idle_reaper.sessions.services.session_activity_service import SessionActivityService

logger = logging.getLogger(__name__)

CLEANUP_JOB_ID = "idle_session_cleanup"


def start_scheduler(service: SessionActivityService) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone="UTC")

    # Runs right away, then every interval. A firing that lands on a running cycle is skipped
    @scheduler.scheduled_job(
        IntervalTrigger(seconds=int(CLEANUP_INTERVAL.total_seconds())),
        id=CLEANUP_JOB_ID,
        next_run_time=datetime.now(timezone.utc),
        max_instances=1,
        coalesce=True,
    )
    def scheduled_cleanup():
        run_cleanup_cycle(service)

    scheduler.start()
    logger.info("✅ Cleanup scheduler started")
    logger.info(f"  - Interval: every {format_minutes(CLEANUP_INTERVAL.total_seconds())}")
    logger.info(
        f"  - Target: idle connections > {format_minutes(IDLE_THRESHOLD.total_seconds())} "
        "of the current user"
    )
    return scheduler


def format_minutes(seconds: float) -> str:
    minutes = seconds / 60
    if minutes.is_integer():
        return f"{int(minutes)} minutes"
    return f"{int(seconds)} seconds"
