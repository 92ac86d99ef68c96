import logging
import sys
from datetime import datetime, timezone

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


class IsoFormatter(logging.Formatter):
    """Formatter that stamps every record with an ISO-8601 UTC timestamp."""

    def formatTime(self, record, datefmt=None):
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return created.isoformat(timespec="milliseconds")


class MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.max_level


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Route INFO and below to stdout, WARNING and above to stderr.

    :param log_level: Root logger level name (e.g. "INFO", "DEBUG")
    :return: The configured root logger
    """
    formatter = IsoFormatter(LOG_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level.upper())
    root_logger.handlers.clear()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(stderr_handler)

    # Scheduler start/stop chatter stays out of the log, skipped runs still show
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    return root_logger
