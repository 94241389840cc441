"""Periodic flush trigger backed by APScheduler."""

import logging
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)

FLUSH_JOB_ID = "remote-logger-flush"


class FlushScheduler:
    """Calls *callback* every *interval* seconds on a background thread."""

    def __init__(self, callback: Callable[[], None]):
        self._callback = callback
        self._scheduler = BackgroundScheduler(daemon=True)
        self._interval: float | None = None

    @property
    def interval(self) -> float | None:
        return self._interval

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self, interval: float):
        """Start (or restart) the periodic job with a new interval."""
        self._interval = interval
        self._scheduler.add_job(
            self._callback,
            "interval",
            seconds=interval,
            id=FLUSH_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        if not self._scheduler.running:
            self._scheduler.start()
        logger.debug("Flush timer scheduled every %.1fs", interval)

    def stop(self):
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._interval = None
