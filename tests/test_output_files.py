"""Tests for the JSON/CSV file sink."""

import csv
import json
from datetime import datetime, timezone

import pytest

from job_scraper.extraction import JobExtractor
from job_scraper.output import FileSink
from job_scraper.output.files import CSV_COLUMNS
from tests.helpers import load_fixture_html

WHEN = datetime(2025, 3, 1, 12, 5, 9, tzinfo=timezone.utc)


@pytest.fixture
def records(utc_scraper_config, plumber, fixed_now):
    return JobExtractor(utc_scraper_config).extract(
        load_fixture_html("google_jobs.html"), plumber, now=fixed_now
    ).jobs


class TestFileSink:
    def test_service_files_named_and_written(self, tmp_path, plumber, records):
        sink = FileSink(tmp_path / "out")

        paths = sink.write_service_results(plumber, records, when=WHEN)

        assert [p.name for p in paths] == [
            "plumber_jobs_api_2025-03-01T12-05-09.json",
            "plumber_jobs_api_2025-03-01T12-05-09.csv",
        ]
        assert all(p.exists() for p in paths)

    def test_json_holds_every_field(self, tmp_path, plumber, records):
        json_path, _ = FileSink(tmp_path).write_service_results(plumber, records, when=WHEN)

        data = json.loads(json_path.read_text(encoding="utf-8"))
        assert len(data) == 3
        assert data[0] == records[0].to_dict()
        assert "fingerprint" in data[0]
        assert json_path.read_text(encoding="utf-8").startswith("[\n  {")

    def test_csv_columns(self, tmp_path, plumber, records):
        _, csv_path = FileSink(tmp_path).write_service_results(plumber, records, when=WHEN)

        with open(csv_path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))

        assert rows[0] == [header for _, header in CSV_COLUMNS]
        assert rows[0][0] == "Service"
        assert rows[1][:3] == ["plumber", "Plumbers", "Licensed Plumber"]
        assert rows[1][6] == "Austin, TX • via LinkedIn"
        assert len(rows) == 4

    def test_combined_files(self, tmp_path, records):
        paths = FileSink(tmp_path).write_combined_results(records, when=WHEN)

        assert [p.name for p in paths] == [
            "all_services_jobs_2025-03-01T12-05-09.json",
            "all_services_jobs_2025-03-01T12-05-09.csv",
        ]

    def test_empty_batch_writes_nothing(self, tmp_path, plumber):
        sink = FileSink(tmp_path / "never-created")

        assert sink.write_service_results(plumber, []) == []
        assert sink.write_combined_results([]) == []
        assert not (tmp_path / "never-created").exists()
