"""Unit tests for the pipeline runner.

Covers ScrapePipeline orchestration:
- Per-service fetch, extract, store, files and notification
- Error isolation (one service failing doesn't stop the others)
- Lock behavior (prevents concurrent runs)
- Metrics aggregation
"""

import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest
from sqlalchemy import create_engine

from job_scraper.config.models import AppConfig
from job_scraper.notifications.models import NotificationResult
from job_scraper.notifications.service import NotificationService
from job_scraper.output import FileSink
from job_scraper.persistence import NullJobStore, SQLJobStore
from job_scraper.persistence.exceptions import DatabaseConnectionError
from job_scraper.pipeline import PipelineRunResult, ScrapePipeline, ServiceRunStats
from tests.helpers import FixtureAdapter, load_fixture_html


@pytest.fixture
def notifier():
    service = Mock(spec=NotificationService)
    service.send_scrape_summary.side_effect = lambda descriptor, total, qualified: NotificationResult(
        service_name=descriptor.name, attempts=1, status="sent"
    )
    return service


@pytest.fixture
def adapter():
    adapter = FixtureAdapter({"plumber": "google_jobs.html", "electrician": "mixed_jobs.html"})
    yield adapter
    adapter.close()


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def pipeline(app_config, adapter, engine, notifier, tmp_path):
    return ScrapePipeline(
        app_config=app_config,
        adapter=adapter,
        store=SQLJobStore(engine),
        notification_service=notifier,
        file_sink=FileSink(tmp_path),
    )


class TestRunOnce:
    def test_processes_enabled_services_in_order(self, pipeline, adapter):
        result = pipeline.run_once()

        assert adapter.fetched == ["plumber", "electrician"]
        assert [s.service_name for s in result.service_stats] == ["plumber", "electrician"]
        assert not result.had_errors
        assert not result.skipped

    def test_aggregates_metrics(self, pipeline):
        result = pipeline.run_once()

        assert result.total_found == 3 + 5
        assert result.total_qualified == 3 + 1
        assert result.total_stored == 4
        assert result.breakdown() == {"plumber": 3, "electrician": 1}

    def test_writes_service_and_combined_files(self, pipeline, tmp_path):
        result = pipeline.run_once()

        names = sorted(p.name for p in tmp_path.iterdir())
        assert len(names) == 6
        assert sum(name.startswith("all_services_jobs_") for name in names) == 2
        assert [p.name.split("_")[0] for p in result.combined_files] == ["all", "all"]
        assert all(s.files_written == 2 for s in result.service_stats)

    def test_combined_files_can_be_disabled(self, app_config, adapter, notifier, tmp_path):
        config = app_config.model_copy(update={"output": app_config.output.model_copy(update={"combined": False})})
        pipeline = ScrapePipeline(config, adapter, NullJobStore(), notifier, FileSink(tmp_path))

        result = pipeline.run_once()

        assert result.combined_files == []
        assert not any(p.name.startswith("all_services") for p in tmp_path.iterdir())

    def test_notifies_every_service(self, pipeline, notifier):
        result = pipeline.run_once()

        assert notifier.send_scrape_summary.call_count == 2
        descriptor, total, qualified = notifier.send_scrape_summary.call_args_list[0][0]
        assert (descriptor.name, total, qualified) == ("plumber", 3, 3)
        assert all(s.notified for s in result.service_stats)

    def test_disabled_services_skipped(self, plumber, electrician, adapter, notifier):
        config = AppConfig(
            services=[plumber, electrician.model_copy(update={"enabled": False})],
            scraper={"timezone": "UTC", "delay_between_services": 0},
        )

        ScrapePipeline(config, adapter, NullJobStore(), notifier).run_once()

        assert adapter.fetched == ["plumber"]

    @patch("job_scraper.pipeline.runner.time.sleep")
    def test_delay_between_services_not_after_last(self, mock_sleep, app_config, adapter, notifier):
        config = app_config.model_copy(
            update={"scraper": app_config.scraper.model_copy(update={"delay_between_services": 1.5})}
        )

        ScrapePipeline(config, adapter, NullJobStore(), notifier).run_once()

        mock_sleep.assert_called_once_with(1.5)


class TestErrorIsolation:
    def test_fetch_failure_skips_service_only(self, app_config, notifier, engine):
        adapter = FixtureAdapter({"electrician": "mixed_jobs.html"})
        pipeline = ScrapePipeline(app_config, adapter, SQLJobStore(engine), notifier)

        result = pipeline.run_once()

        plumber_stats, electrician_stats = result.service_stats
        assert plumber_stats.had_errors
        assert "fetch failed" in plumber_stats.error_message
        assert electrician_stats.qualified_count == 1
        assert result.had_errors
        assert notifier.send_scrape_summary.call_count == 1

    def test_out_of_range_time_token_does_not_abort_run(self, app_config, notifier):
        adapter = FixtureAdapter({"plumber": "out_of_range_jobs.html", "electrician": "mixed_jobs.html"})
        pipeline = ScrapePipeline(app_config, adapter, NullJobStore(), notifier)

        result = pipeline.run_once()

        plumber_stats, electrician_stats = result.service_stats
        assert plumber_stats.qualified_count == 1
        assert not plumber_stats.had_errors
        assert electrician_stats.qualified_count == 1

    def test_unexpected_extraction_error_skips_service_only(self, app_config, adapter, notifier):
        pipeline = ScrapePipeline(app_config, adapter, NullJobStore(), notifier)
        real_extract = pipeline.extractor.extract

        def flaky_extract(html, descriptor, now=None):
            if descriptor.name == "plumber":
                raise RuntimeError("parser bug")
            return real_extract(html, descriptor, now=now)

        with patch.object(pipeline.extractor, "extract", side_effect=flaky_extract):
            result = pipeline.run_once()

        plumber_stats, electrician_stats = result.service_stats
        assert plumber_stats.had_errors
        assert "unexpected error" in plumber_stats.error_message
        assert electrician_stats.qualified_count == 1
        assert notifier.send_scrape_summary.call_count == 1

    def test_store_failure_recorded_and_run_continues(self, app_config, adapter, notifier):
        store = Mock(spec=NullJobStore)
        store.upsert_jobs.side_effect = DatabaseConnectionError("db down")

        result = ScrapePipeline(app_config, adapter, store, notifier).run_once()

        assert all(s.had_errors for s in result.service_stats)
        assert "store failed: db down" in result.service_stats[0].error_message
        assert notifier.send_scrape_summary.call_count == 2

    def test_file_failure_recorded(self, app_config, adapter, notifier):
        sink = Mock(spec=FileSink)
        sink.write_service_results.side_effect = PermissionError("read-only")
        sink.write_combined_results.side_effect = PermissionError("read-only")

        result = ScrapePipeline(app_config, adapter, NullJobStore(), notifier, sink).run_once()

        assert result.service_stats[0].had_errors
        assert result.combined_files == []

    def test_notification_failure_recorded(self, app_config, adapter):
        notifier = Mock(spec=NotificationService)
        notifier.send_scrape_summary.return_value = NotificationResult(
            service_name="x", attempts=2, status="failed", error="ntfy down"
        )

        result = ScrapePipeline(app_config, adapter, NullJobStore(), notifier).run_once()

        assert all(not s.notified for s in result.service_stats)
        assert "notification failed: ntfy down" in result.service_stats[0].error_message

    def test_skipped_notification_is_not_an_error(self, app_config, adapter):
        notifier = Mock(spec=NotificationService)
        notifier.send_scrape_summary.return_value = NotificationResult(
            service_name="x", attempts=0, status="skipped"
        )

        result = ScrapePipeline(app_config, adapter, NullJobStore(), notifier).run_once()

        assert not result.had_errors


class TestProcessDocument:
    def test_runs_core_and_sinks(self, pipeline, plumber, fixed_now):
        stats = pipeline.process_document(load_fixture_html("google_jobs.html"), plumber, now=fixed_now)

        assert stats.total_found == 3
        assert stats.qualified_count == 3
        assert stats.stored_count == 3
        assert stats.files_written == 2
        assert stats.notified
        assert [r.found_time for r in stats.records][-1] == "3 hours ago"

    def test_no_jobs_skips_store_and_files_but_notifies(self, app_config, adapter, notifier, plumber):
        store = Mock(spec=NullJobStore)
        sink = Mock(spec=FileSink)
        pipeline = ScrapePipeline(app_config, adapter, store, notifier, sink)

        stats = pipeline.process_document(load_fixture_html("no_results.html"), plumber)

        assert (stats.total_found, stats.qualified_count) == (0, 0)
        store.upsert_jobs.assert_not_called()
        sink.write_service_results.assert_not_called()
        notifier.send_scrape_summary.assert_called_once_with(plumber, 0, 0)


class TestLock:
    def test_concurrent_run_is_skipped(self, pipeline):
        pipeline._lock.acquire()
        try:
            result = pipeline.run_once()
        finally:
            pipeline._lock.release()

        assert result.skipped
        assert result.service_stats == []

    def test_lock_released_after_run(self, pipeline):
        pipeline.run_once()

        assert pipeline._lock.acquire(blocking=False)
        pipeline._lock.release()

    def test_second_thread_skips_while_first_runs(self, app_config, notifier):
        started = threading.Event()
        release = threading.Event()

        class SlowAdapter(FixtureAdapter):
            def fetch_page_html(self, descriptor):
                started.set()
                release.wait(timeout=5)
                return super().fetch_page_html(descriptor)

        pipeline = ScrapePipeline(
            app_config,
            SlowAdapter({"plumber": "google_jobs.html", "electrician": "mixed_jobs.html"}),
            NullJobStore(),
            notifier,
        )
        results = []
        worker = threading.Thread(target=lambda: results.append(pipeline.run_once()))
        worker.start()
        started.wait(timeout=5)

        second = pipeline.run_once()
        release.set()
        worker.join(timeout=5)

        assert second.skipped
        assert not results[0].skipped


class TestResultModels:
    def test_record_error_accumulates(self):
        stats = ServiceRunStats(service_name="plumber")
        stats.record_error("fetch failed")
        stats.record_error("notification failed")

        assert stats.error_count == 2
        assert stats.error_message == "fetch failed; notification failed"

    def test_run_result_aggregates_and_times(self):
        start = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
        result = PipelineRunResult(
            run_started_at=start,
            run_finished_at=start + timedelta(seconds=12),
            service_stats=[
                ServiceRunStats("a", total_found=5, qualified_count=2, stored_count=2),
                ServiceRunStats("b", total_found=1, error_count=1, had_errors=True),
            ],
        )

        assert result.total_found == 6
        assert result.total_qualified == 2
        assert result.total_errors == 1
        assert result.had_errors
        assert result.total_duration_seconds == 12.0
