# idle_reaper/core/cleanup_function.py
import logging
from datetime import datetime, timedelta, timezone

from idle_reaper.core.config import IDLE_THRESHOLD
from idle_reaper.sessions.models.cleanup_report_model import CleanupReport
from idle_reaper.sessions.services.session_activity_service import SessionActivityService

logger = logging.getLogger(__name__)


def error_message(error: Exception) -> str:
    # Keep only the driver text, flattened: libpq messages span several lines
    original = getattr(error, "orig", None)
    return " ".join(str(original or error).split())


def run_cleanup_cycle(
    service: SessionActivityService,
    idle_threshold: timedelta = IDLE_THRESHOLD,
) -> CleanupReport | None:
    """Terminate idle PostgreSQL sessions of the current user to avoid connection exhaustion"""
    try:
        before = service.get_state_snapshot()
        result = service.terminate_idle_sessions(idle_threshold)
        remaining = service.count_remaining_sessions()
        username = service.get_current_username()

        report = CleanupReport(
            username=username,
            before=before,
            result=result,
            remaining=remaining,
            timestamp=datetime.now(timezone.utc),
        )
    except Exception as e:
        logger.error(f"❌ Error cleaning up idle connections: {error_message(e)}")
        return None

    logger.info(report.render())
    if report.result.failed:
        logger.warning(f"⚠️ {len(report.result.failed)} sessions could not be terminated")
    return report
