"""JSON and CSV result files.

Per service: ``<name>_jobs_api_<stamp>.json`` and ``.csv``. After a run:
``all_services_jobs_<stamp>.json`` and ``.csv``. Empty batches write nothing.
"""

import csv
import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from job_scraper.config.models import ServiceDescriptor
from job_scraper.domain.models import JobRecord
from job_scraper.logging import get_logger
from job_scraper.utils.timestamps import file_stamp

logger = get_logger(__name__, component="output")

# (record field, CSV header) in column order
CSV_COLUMNS: Tuple[Tuple[str, str], ...] = (
    ("service", "Service"),
    ("service_display_name", "Service Name"),
    ("title", "Job Title"),
    ("company", "Company"),
    ("city", "City"),
    ("state", "State"),
    ("location", "Full Location"),
    ("posted_date", "Posted Date/Time"),
    ("scraped_at", "Scraped At"),
)

COMBINED_PREFIX = "all_services_jobs"


class FileSink:
    """Writes record batches to an output directory."""

    def __init__(self, directory: str | Path = "output"):
        self.directory = Path(directory)

    def write_service_results(
        self,
        descriptor: ServiceDescriptor,
        records: Sequence[JobRecord],
        when: Optional[datetime] = None,
    ) -> List[Path]:
        """Write one service's qualified records.

        Returns:
            Paths written (JSON then CSV); empty when there were no records
        """
        return self._write(f"{descriptor.name}_jobs_api", records, when)

    def write_combined_results(
        self, records: Sequence[JobRecord], when: Optional[datetime] = None
    ) -> List[Path]:
        """Write every service's records from one run into a single pair of files."""
        return self._write(COMBINED_PREFIX, records, when)

    def _write(
        self, prefix: str, records: Sequence[JobRecord], when: Optional[datetime]
    ) -> List[Path]:
        if not records:
            logger.debug(
                f"No records to write for {prefix}",
                extra={"event": "output.skipped", "prefix": prefix},
            )
            return []

        self.directory.mkdir(parents=True, exist_ok=True)
        stem = f"{prefix}_{file_stamp(when)}"
        json_path = self.directory / f"{stem}.json"
        csv_path = self.directory / f"{stem}.csv"

        write_json(json_path, records)
        write_csv(csv_path, records)

        logger.info(
            f"Saved {len(records)} records to {json_path.name} and {csv_path.name}",
            extra={
                "event": "output.written",
                "prefix": prefix,
                "records": len(records),
                "json_path": str(json_path),
                "csv_path": str(csv_path),
            },
        )
        return [json_path, csv_path]


def write_json(path: Path, records: Sequence[JobRecord]) -> None:
    """Every record field, as a JSON array indented by two spaces."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump([record.to_dict() for record in records], f, indent=2, ensure_ascii=False)


def write_csv(path: Path, records: Sequence[JobRecord]) -> None:
    """Fixed-column CSV with human-readable headers."""
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow([header for _, header in CSV_COLUMNS])
        for record in records:
            writer.writerow([getattr(record, field) for field, _ in CSV_COLUMNS])
