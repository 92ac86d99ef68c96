import logging
import sys

from idle_reaper.core.config import get_settings
from idle_reaper.core.database import create_db_engine
from idle_reaper.core.lifecycle import ShutdownHandler, shutdown
from idle_reaper.core.logging_config import setup_logging
from idle_reaper.core.scheduler import start_scheduler
from idle_reaper.sessions.services.session_activity_service import SessionActivityService

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    handler = ShutdownHandler()
    handler.install()

    engine = create_db_engine(settings)
    scheduler = None
    try:
        scheduler = start_scheduler(SessionActivityService(engine))
        handler.wait()
    finally:
        shutdown(scheduler, engine, handler.signal_name)
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
