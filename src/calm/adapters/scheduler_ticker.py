"""APScheduler-backed ticker for the focus controller."""

import logging
from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


class SchedulerTicker:
    """
    Periodic tick as a single interval job on an APScheduler scheduler.

    Implements Ticker protocol. Works with BackgroundScheduler (CLI) and
    AsyncIOScheduler (chat bot); the scheduler's lifecycle belongs to the caller.
    """

    def __init__(self, scheduler: BaseScheduler, job_id: str = "focus_tick"):
        self.scheduler = scheduler
        self.job_id = job_id

    def start(self, callback: Callable[[], None], interval_seconds: float = 1.0) -> None:
        self.scheduler.add_job(
            callback,
            IntervalTrigger(seconds=interval_seconds),
            id=self.job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.debug(f"Ticker {self.job_id} started ({interval_seconds}s)")

    def cancel(self) -> None:
        try:
            self.scheduler.remove_job(self.job_id)
            logger.debug(f"Ticker {self.job_id} cancelled")
        except JobLookupError:
            pass
