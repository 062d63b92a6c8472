# session_clock/scheduler.py
"""APScheduler-based timers: the 1 Hz tick plus the feed refreshes."""
from datetime import datetime
from typing import Callable

import pytz
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from loguru import logger

TICK_EXECUTOR = "default"
FEED_EXECUTOR = "feeds"


class Scheduler:
    """
    Interval jobs on two thread pools. The tick runs on its own single worker,
    feed refreshes on a separate pool, so a hanging HTTP call never delays the clock.

    Every job runs once immediately, then every `seconds`. Overlapping runs of
    one job are skipped (max_instances=1) and missed runs collapse into one.
    """
    def __init__(self, background: bool = False, feed_workers: int = 2):
        scheduler_cls = BackgroundScheduler if background else BlockingScheduler
        self._scheduler = scheduler_cls(
            executors={
                TICK_EXECUTOR: ThreadPoolExecutor(1),
                FEED_EXECUTOR: ThreadPoolExecutor(feed_workers),
            },
            job_defaults={"coalesce": True, "max_instances": 1},
            timezone="UTC",
        )
        self._scheduler.add_listener(self._on_job_event, EVENT_JOB_ERROR | EVENT_JOB_MISSED)

    @property
    def jobs(self):
        return self._scheduler.get_jobs()

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def every(self, seconds: float, name: str, callback: Callable[[], object],
              executor: str = TICK_EXECUTOR):
        if not seconds > 0:
            raise ValueError(f"Job '{name}' interval must be positive, got {seconds}")
        job = self._scheduler.add_job(
            callback,
            "interval",
            seconds=seconds,
            id=name,
            name=name,
            executor=executor,
            next_run_time=datetime.now(pytz.utc),
            replace_existing=True,
        )
        logger.debug(f"Scheduled '{name}' every {seconds:g}s on '{executor}'")
        return job

    def _on_job_event(self, event):
        if event.exception is not None:
            logger.opt(exception=event.exception).error(f"❌ Job '{event.job_id}' failed; rescheduling.")
        else:
            logger.warning(f"⚠️ Job '{event.job_id}' missed its run time.")

    def start(self) -> None:
        """Blocks until stop() when built with background=False."""
        logger.info(f"🚀 Scheduler started with {len(self.jobs)} jobs: {[j.id for j in self.jobs]}")
        self._scheduler.start()

    def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("🛑 Scheduler stopped.")
