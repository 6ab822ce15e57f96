"""Interval scheduling of scrape runs."""

import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from job_scraper.logging import get_logger

logger = get_logger(__name__, component="scheduler")

SCRAPE_JOB_ID = "job-scrape"


class ScrapeScheduler:
    """
    Triggers the scrape pipeline every ``interval_seconds``.

    Jobs run on an APScheduler worker thread; the main thread stays free to
    handle signals and wait on the shutdown event.
    """

    def __init__(
        self,
        run_callable: Callable[[], object],
        interval_seconds: int,
        shutdown_event: Optional[threading.Event] = None,
        run_immediately: bool = True,
    ):
        """
        Args:
            run_callable: Called on every tick (normally ScrapePipeline.run_once)
            interval_seconds: Seconds between runs
            shutdown_event: Set once the scheduler has shut down
            run_immediately: Fire the first run at startup instead of after one interval
        """
        self.run_callable = run_callable
        self.interval_seconds = interval_seconds
        self.shutdown_event = shutdown_event
        self.run_immediately = run_immediately

        # One run at a time; late ticks collapse into a single run
        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone.utc,
        )

    def start(self) -> None:
        """Register the scrape job and start the background scheduler."""
        trigger = IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc)

        job_kwargs = {}
        if self.run_immediately:
            job_kwargs["next_run_time"] = datetime.now(timezone.utc)

        self.scheduler.add_job(
            func=self.run_callable,
            trigger=trigger,
            id=SCRAPE_JOB_ID,
            name="Job Scrape",
            replace_existing=True,
            **job_kwargs,
        )
        self.scheduler.start()

        next_run = self.get_next_run_time()
        logger.info(
            f"Scheduler started, scraping every {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
                "next_run_time": next_run.isoformat() if next_run else None,
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        """
        Stop the scheduler.

        Args:
            wait: Block until a run in progress has finished
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event is not None:
            self.shutdown_event.set()

        logger.info("Scheduler stopped", extra={"event": "scheduler.stopped"})

    def trigger_now(self) -> object:
        """Run the scrape synchronously on the calling thread."""
        logger.info("Manual scrape triggered", extra={"event": "scheduler.trigger_now"})
        return self.run_callable()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(SCRAPE_JOB_ID)
        return job.next_run_time if job else None
