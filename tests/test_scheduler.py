"""Unit tests for the scrape scheduler.

Covers:
- Job registration (single instance, coalescing, misfire grace)
- Immediate first run
- Start/shutdown lifecycle
- Manual trigger
"""

import threading
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from job_scraper.scheduler import SCRAPE_JOB_ID, ScrapeScheduler


@pytest.fixture
def scheduler_factory():
    created = []

    def make(**kwargs):
        kwargs.setdefault("run_callable", Mock())
        kwargs.setdefault("interval_seconds", 300)
        scheduler = ScrapeScheduler(**kwargs)
        created.append(scheduler)
        return scheduler

    yield make

    for scheduler in created:
        if scheduler.is_running():
            scheduler.shutdown(wait=False)


class TestScrapeScheduler:
    def test_initial_state(self, scheduler_factory):
        scheduler = scheduler_factory(interval_seconds=600)

        assert scheduler.interval_seconds == 600
        assert not scheduler.is_running()
        assert scheduler.get_next_run_time() is None

    def test_start_and_shutdown(self, scheduler_factory):
        shutdown_event = threading.Event()
        scheduler = scheduler_factory(shutdown_event=shutdown_event)

        scheduler.start()
        assert scheduler.is_running()

        scheduler.shutdown(wait=False)
        assert not scheduler.is_running()
        assert shutdown_event.is_set()

    def test_job_registered_with_overlap_protection(self, scheduler_factory):
        scheduler = scheduler_factory(interval_seconds=900, run_immediately=False)
        scheduler.start()

        job = scheduler.scheduler.get_job(SCRAPE_JOB_ID)

        assert job.max_instances == 1
        assert job.coalesce is True
        assert job.misfire_grace_time == 900
        assert job.trigger.interval == timedelta(seconds=900)

    def test_first_run_fires_immediately(self, scheduler_factory):
        ran = threading.Event()
        scheduler = scheduler_factory(run_callable=ran.set, interval_seconds=3600)

        scheduler.start()

        assert ran.wait(timeout=5)

    def test_deferred_first_run(self, scheduler_factory):
        scheduler = scheduler_factory(interval_seconds=3600, run_immediately=False)
        before = datetime.now(timezone.utc)

        scheduler.start()

        assert scheduler.get_next_run_time() >= before + timedelta(seconds=3590)

    def test_trigger_now_runs_synchronously(self, scheduler_factory):
        run = Mock(return_value="result")
        scheduler = scheduler_factory(run_callable=run)

        assert scheduler.trigger_now() == "result"
        run.assert_called_once_with()

    def test_shutdown_when_not_started(self, scheduler_factory):
        shutdown_event = threading.Event()
        scheduler = scheduler_factory(shutdown_event=shutdown_event)

        scheduler.shutdown()

        assert shutdown_event.is_set()

    def test_overlapping_ticks_do_not_stack(self, scheduler_factory):
        active = []
        overlap = []
        release = threading.Event()

        def slow_run():
            if active:
                overlap.append(True)
            active.append(True)
            release.wait(timeout=2)
            active.pop()

        scheduler = scheduler_factory(run_callable=slow_run, interval_seconds=300)
        scheduler.start()
        time.sleep(0.2)

        # A manual tick while the job is still running must not start a second instance
        scheduler.scheduler.get_job(SCRAPE_JOB_ID).modify(next_run_time=datetime.now(timezone.utc))
        time.sleep(0.2)
        release.set()

        assert overlap == []
