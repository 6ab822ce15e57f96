"""Data models for pipeline execution tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from job_scraper.domain.models import JobRecord


@dataclass
class ServiceRunStats:
    """
    Statistics for one service within a pipeline run.

    Attributes:
        service_name: Service the stats belong to
        total_found: Containers found in the document (before validation)
        qualified_count: Records that qualified after dedup
        stored_count: Rows the store reports as written
        files_written: Result files written for this service
        notified: Whether the summary notification was sent
        error_count: Number of errors encountered
        had_errors: Whether any step failed
        error_message: Error messages, joined, if any step failed
        duration_seconds: Time spent on this service
        records: Qualified records, kept for the combined output files
    """

    service_name: str
    total_found: int = 0
    qualified_count: int = 0
    stored_count: int = 0
    files_written: int = 0
    notified: bool = False
    error_count: int = 0
    had_errors: bool = False
    error_message: Optional[str] = None
    duration_seconds: float = 0.0
    records: List[JobRecord] = field(default_factory=list, repr=False)

    def record_error(self, message: str) -> None:
        """Count a failed step and keep its message."""
        self.error_count += 1
        self.had_errors = True
        self.error_message = message if not self.error_message else f"{self.error_message}; {message}"


@dataclass
class PipelineRunResult:
    """
    Aggregate results from a complete pipeline execution.

    Attributes:
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the run completed
        total_duration_seconds: Total time for the entire run
        total_found: Containers found across all services
        total_qualified: Qualified records across all services
        total_stored: Rows written across all services
        total_errors: Errors across all services
        service_stats: Per-service statistics, in run order
        had_errors: Whether any service encountered errors
        skipped: Whether the run was skipped (lock already held)
        combined_files: Paths of the all-services result files
    """

    run_started_at: datetime
    run_finished_at: datetime
    total_duration_seconds: float = 0.0
    total_found: int = 0
    total_qualified: int = 0
    total_stored: int = 0
    total_errors: int = 0
    service_stats: List[ServiceRunStats] = field(default_factory=list)
    had_errors: bool = False
    skipped: bool = False
    combined_files: List[Path] = field(default_factory=list)

    def __post_init__(self):
        if self.service_stats:
            self.total_found = sum(s.total_found for s in self.service_stats)
            self.total_qualified = sum(s.qualified_count for s in self.service_stats)
            self.total_stored = sum(s.stored_count for s in self.service_stats)
            self.total_errors = sum(s.error_count for s in self.service_stats)
            self.had_errors = self.had_errors or any(s.had_errors for s in self.service_stats)

        if self.total_duration_seconds == 0.0:
            delta = self.run_finished_at - self.run_started_at
            self.total_duration_seconds = delta.total_seconds()

    def breakdown(self) -> Dict[str, int]:
        """Qualified record count per service name."""
        return {s.service_name: s.qualified_count for s in self.service_stats}
