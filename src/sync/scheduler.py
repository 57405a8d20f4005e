from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from errors import CryptoTrackerError, SyncAlreadyRunning
from sync.pipeline import SyncPipeline

logger = logging.getLogger(__name__)


def next_top_of_hour(now: datetime) -> datetime:
    """Return the first ``HH:00:00`` strictly after ``now``."""
    floor = now.replace(minute=0, second=0, microsecond=0)
    return floor + timedelta(hours=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HourlySyncScheduler:
    """Runs the sync pipeline at the top of every hour on a daemon thread.

    Usage:
        scheduler = HourlySyncScheduler(pipeline)
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(
        self,
        pipeline: SyncPipeline,
        clock: Callable[[], datetime] = _utcnow,
        join_timeout: float = 2.0,
    ) -> None:
        self.pipeline = pipeline
        self._clock = clock
        self._join_timeout = join_timeout
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._loop, name="hourly-sync", daemon=True)
        self._thread.start()
        logger.info("Hourly sync scheduler started")

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=self._join_timeout)
        self._thread = None
        logger.info("Hourly sync scheduler stopped")

    def run_once(self) -> None:
        """Run a single tick; failures are logged and left for the next tick."""
        try:
            self.pipeline.run_sync()
        except SyncAlreadyRunning:
            logger.warning("Skipping scheduled sync: previous run still in progress")
        except CryptoTrackerError as exc:
            logger.error("Scheduled sync failed: %s", exc)
        except Exception:
            logger.exception("Scheduled sync failed with an unexpected error")

    def _loop(self) -> None:
        stop_event = self._stop_event
        while not stop_event.is_set():
            target = next_top_of_hour(self._clock())
            while True:
                remaining = (target - self._clock()).total_seconds()
                if remaining <= 0:
                    break
                if stop_event.wait(timeout=remaining):
                    return
            self.run_once()
