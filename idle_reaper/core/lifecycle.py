import logging
import signal
import threading

from apscheduler.schedulers.base import BaseScheduler
from sqlalchemy.engine import Engine

from idle_reaper.core.database import dispose_engine

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownHandler:
    """Turns SIGINT/SIGTERM into an event the main thread can wait on."""

    def __init__(self):
        self._event = threading.Event()
        self.signal_name: str | None = None

    def install(self, signals=SHUTDOWN_SIGNALS) -> None:
        for sig in signals:
            signal.signal(sig, self.handle)

    def handle(self, signum, frame) -> None:
        # Only the first signal counts, a second one during drain is ignored
        if self._event.is_set():
            return
        self.signal_name = signal.Signals(signum).name
        self._event.set()

    def wait(self, poll_interval: float = 1.0) -> str:
        while not self._event.wait(poll_interval):
            pass
        return self.signal_name


def shutdown(scheduler: BaseScheduler | None, engine: Engine, signal_name: str | None) -> None:
    """Let any running cycle finish, then release the pool."""
    logger.info(f"{signal_name or 'Shutdown'} received, closing pool...")
    try:
        if scheduler is not None and scheduler.running:
            scheduler.shutdown(wait=True)
    finally:
        dispose_engine(engine)
