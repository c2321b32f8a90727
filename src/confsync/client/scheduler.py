"""Periodic background job for update checks.

The job ticks every ``min_interval`` seconds and runs its callback only
once the configured interval has elapsed since the previous run, so a
changed interval takes effect without rescheduling.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

MIN_INTERVAL = 60  # seconds
JOB_ID = "periodic_check"


class PeriodicJob:
    """Runs a callback periodically on an APScheduler background thread.

    At most one run is in flight at a time. With ``single=True`` the job
    stops itself after the first run that does not raise.
    """

    def __init__(
        self,
        interval: Callable[[], float],
        callback: Callable[[], None],
        min_interval: float = MIN_INTERVAL,
        single: bool = False,
        name: str = "Periodic check",
    ) -> None:
        """Initialize the job.

        Args:
            interval: Returns the wanted period in seconds; read on every tick.
            callback: Work to run.
            min_interval: Tick granularity in seconds.
            single: Stop after the first successful run.
            name: Job name shown in logs.
        """
        self.interval = interval
        self.callback = callback
        self.min_interval = min_interval
        self.single = single
        self.name = name
        self._scheduler: BackgroundScheduler | None = None
        self._last_run: float | None = None
        self._running = threading.Lock()
        self._stopped = threading.Event()

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    @property
    def stopped(self) -> threading.Event:
        """Set once the job has been stopped."""
        return self._stopped

    def start(self, immediate_run: bool = False) -> None:
        """Start (or restart) the job."""
        self.stop()
        self._stopped.clear()
        self._last_run = None if immediate_run else time.monotonic()

        self._scheduler = BackgroundScheduler()
        self._scheduler.add_job(
            self._tick,
            trigger=IntervalTrigger(seconds=self.min_interval),
            id=JOB_ID,
            name=self.name,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
            next_run_time=datetime.now(UTC) if immediate_run else None,
        )
        self._scheduler.start()
        logger.info("%s started (tick every %gs)", self.name, self.min_interval)

    def stop(self) -> None:
        """Stop the job; a run in progress finishes on its own."""
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("%s stopped", self.name)
        self._stopped.set()

    def _due(self) -> bool:
        if self._last_run is None:
            return True
        return time.monotonic() - self._last_run >= self.interval()

    def _tick(self) -> None:
        """Job function for each scheduler tick."""
        if not self._due():
            return
        if not self._running.acquire(blocking=False):
            logger.debug("%s still running, skipping tick", self.name)
            return
        try:
            self.run_once()
        finally:
            self._running.release()

    def run_once(self) -> bool:
        """Run the callback now.

        Returns:
            True if the callback completed without raising.
        """
        try:
            self.callback()
        except Exception:
            logger.exception("Error during %s", self.name)
            return False
        finally:
            self._last_run = time.monotonic()

        if self.single:
            self.stop()
        return True
