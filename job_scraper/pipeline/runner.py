"""Pipeline orchestration: fetch, extract and deliver each service in turn."""

import threading
import time
from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from job_scraper.adapters.base import BaseAdapter
from job_scraper.adapters.exceptions import AdapterError
from job_scraper.config.models import AppConfig, ServiceDescriptor
from job_scraper.domain.models import JobRecord
from job_scraper.extraction.extractor import JobExtractor
from job_scraper.logging import get_logger
from job_scraper.logging.context import log_context
from job_scraper.notifications.service import NotificationService
from job_scraper.output.files import FileSink
from job_scraper.persistence.exceptions import PersistenceError
from job_scraper.persistence.store import JobStore
from job_scraper.persistence.writer import persist_batch
from job_scraper.utils.timestamps import utc_now

from .models import PipelineRunResult, ServiceRunStats

logger = get_logger(__name__, component="pipeline")


class ScrapePipeline:
    """
    Runs one scrape across all enabled services.

    Services are processed sequentially, in configuration order. A failure
    in one service (fetch, store, files or notification) is recorded in its
    ServiceRunStats and the run continues with the next service.
    """

    def __init__(
        self,
        app_config: AppConfig,
        adapter: BaseAdapter,
        store: JobStore,
        notification_service: Optional[NotificationService] = None,
        file_sink: Optional[FileSink] = None,
        extractor: Optional[JobExtractor] = None,
    ):
        """
        Initialize the scrape pipeline.

        Args:
            app_config: Application configuration
            adapter: Fetches each service's search-result page
            store: Receives qualified rows
            notification_service: Sends per-service summaries (None disables them)
            file_sink: Writes JSON/CSV results (None disables files)
            extractor: Document extractor (built from app_config when None)
        """
        self.app_config = app_config
        self.adapter = adapter
        self.store = store
        self.notification_service = notification_service
        self.file_sink = file_sink
        self.extractor = extractor or JobExtractor(app_config.scraper, app_config.selectors)
        self._lock = threading.Lock()

    def run_once(self) -> PipelineRunResult:
        """
        Scrape every enabled service once.

        If a previous run still holds the lock the call returns immediately
        with ``skipped=True``.

        Returns:
            PipelineRunResult with aggregate metrics and per-service stats
        """
        run_started_at = utc_now()
        run_id = uuid4().hex

        if not self._lock.acquire(blocking=False):
            with log_context(run_id=run_id):
                logger.warning(
                    "Pipeline run skipped: previous run still in progress",
                    extra={"event": "pipeline.run.skipped", "reason": "lock_held"},
                )
            return PipelineRunResult(
                run_started_at=run_started_at, run_finished_at=utc_now(), skipped=True
            )

        try:
            with log_context(run_id=run_id):
                return self._run(run_started_at)
        finally:
            self._lock.release()

    def _run(self, run_started_at: datetime) -> PipelineRunResult:
        services = self.app_config.get_enabled_services()
        delay = self.app_config.scraper.delay_between_services

        logger.info(
            f"Pipeline run started for {len(services)} services",
            extra={
                "event": "pipeline.run.started",
                "enabled_service_count": len(services),
                "disabled_service_count": len(self.app_config.services) - len(services),
            },
        )

        service_stats: List[ServiceRunStats] = []
        for position, descriptor in enumerate(services, 1):
            logger.info(
                f"Scraping service {position}/{len(services)}: {descriptor.display_name}",
                extra={"event": "pipeline.service.next", "position": position},
            )
            service_stats.append(self._process_service(descriptor))

            if delay and position < len(services):
                time.sleep(delay)

        all_records = [record for stats in service_stats for record in stats.records]
        combined_files = self._write_combined(all_records)

        result = PipelineRunResult(
            run_started_at=run_started_at,
            run_finished_at=utc_now(),
            service_stats=service_stats,
            combined_files=combined_files,
        )

        logger.info(
            f"Pipeline run completed: {result.total_qualified} qualified of "
            f"{result.total_found} found across {len(service_stats)} services",
            extra={
                "event": "pipeline.run.completed",
                "duration_ms": int(result.total_duration_seconds * 1000),
                "total_found": result.total_found,
                "total_qualified": result.total_qualified,
                "total_stored": result.total_stored,
                "total_errors": result.total_errors,
                "had_errors": result.had_errors,
                "breakdown": result.breakdown(),
            },
        )
        return result

    def _process_service(self, descriptor: ServiceDescriptor) -> ServiceRunStats:
        service_start = time.time()

        with log_context(service_name=descriptor.name, table=descriptor.table):
            try:
                html = self.adapter.fetch_page_html(descriptor)
            except AdapterError as e:
                stats = ServiceRunStats(service_name=descriptor.name)
                stats.record_error(f"fetch failed: {e}")
                logger.error(
                    f"Failed to fetch {descriptor.display_name}, skipping: {e}",
                    extra={"event": "service.fetch.failed", "error_type": type(e).__name__},
                )
                stats.duration_seconds = time.time() - service_start
                return stats

            try:
                stats = self.process_document(html, descriptor)
            except Exception as e:
                stats = ServiceRunStats(service_name=descriptor.name)
                stats.record_error(f"unexpected error: {e}")
                logger.error(
                    f"Unexpected error processing {descriptor.display_name}: {e}",
                    extra={"event": "service.run.failed", "error_type": type(e).__name__},
                    exc_info=True,
                )
                stats.duration_seconds = time.time() - service_start
                return stats

            stats.duration_seconds = time.time() - service_start

            logger.info(
                f"{descriptor.display_name}: {stats.qualified_count}/{stats.total_found} qualified, "
                f"{stats.stored_count} stored",
                extra={
                    "event": "service.run.completed",
                    "total_found": stats.total_found,
                    "qualified": stats.qualified_count,
                    "stored": stats.stored_count,
                    "files_written": stats.files_written,
                    "notified": stats.notified,
                    "had_errors": stats.had_errors,
                    "duration_seconds": round(stats.duration_seconds, 3),
                },
            )
            return stats

    def process_document(
        self,
        html: str,
        descriptor: ServiceDescriptor,
        now: Optional[datetime] = None,
    ) -> ServiceRunStats:
        """
        Extract one already-fetched document and hand the result to the sinks.

        Store and file sinks only run when there are qualified records; the
        summary notification is always sent.

        Args:
            html: Document markup
            descriptor: Service the document belongs to
            now: Reference instant for relative times (defaults to utc_now())

        Returns:
            ServiceRunStats for this document
        """
        stats = ServiceRunStats(service_name=descriptor.name)

        extraction = self.extractor.extract(html, descriptor, now=now)
        stats.total_found = extraction.total_found
        stats.qualified_count = len(extraction.jobs)
        stats.records = list(extraction.jobs)

        if extraction.jobs:
            self._store(descriptor, extraction.jobs, stats)
            self._write_files(descriptor, extraction.jobs, stats)
        else:
            logger.warning(
                f"No valid jobs found for {descriptor.display_name}",
                extra={"event": "service.no_jobs", "total_found": extraction.total_found},
            )

        self._notify(descriptor, stats)
        return stats

    def _store(self, descriptor: ServiceDescriptor, records: List[JobRecord], stats: ServiceRunStats) -> None:
        try:
            stats.stored_count = persist_batch(self.store, descriptor, records)
        except PersistenceError as e:
            stats.record_error(f"store failed: {e}")
            logger.error(
                f"Could not store jobs for {descriptor.display_name}: {e}",
                extra={"event": "service.store.failed", "error_type": type(e).__name__},
            )

    def _write_files(self, descriptor: ServiceDescriptor, records: List[JobRecord], stats: ServiceRunStats) -> None:
        if self.file_sink is None:
            return
        try:
            stats.files_written = len(self.file_sink.write_service_results(descriptor, records))
        except OSError as e:
            stats.record_error(f"file output failed: {e}")
            logger.error(
                f"Could not write result files for {descriptor.display_name}: {e}",
                extra={"event": "service.output.failed", "error_type": type(e).__name__},
            )

    def _notify(self, descriptor: ServiceDescriptor, stats: ServiceRunStats) -> None:
        if self.notification_service is None:
            return
        result = self.notification_service.send_scrape_summary(
            descriptor, stats.total_found, stats.qualified_count
        )
        stats.notified = result.is_success()
        if result.status == "failed":
            stats.record_error(f"notification failed: {result.error}")

    def _write_combined(self, records: List[JobRecord]) -> list:
        if self.file_sink is None or not self.app_config.output.combined:
            return []
        try:
            return self.file_sink.write_combined_results(records)
        except OSError as e:
            logger.error(
                f"Could not write combined result files: {e}",
                extra={"event": "pipeline.output.failed", "error_type": type(e).__name__},
            )
            return []
