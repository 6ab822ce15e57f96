"""Tests for the JobRecord model."""

import pytest
from pydantic import ValidationError

from job_scraper.domain import JobRecord


def make_record(**overrides):
    fields = dict(
        service="plumber",
        service_display_name="Plumbers",
        title="Licensed Plumber",
        posted_date="2025-03-01 10:00 AM",
        posted_at="2025-03-01T10:00:00Z",
        found_time="2 hours ago",
        scraped_at="2025-03-01T12:00:00Z",
        fingerprint="f" * 64,
    )
    fields.update(overrides)
    return JobRecord(**fields)


def test_optional_text_fields_default_to_empty():
    record = make_record()

    assert (record.company, record.city, record.state, record.location) == ("", "", "", "")


def test_record_is_immutable():
    record = make_record()

    with pytest.raises(ValidationError):
        record.title = "Changed"


def test_fingerprint_required():
    with pytest.raises(ValidationError):
        make_record(fingerprint="")


def test_to_dict_field_order():
    assert list(make_record().to_dict()) == [
        "service",
        "service_display_name",
        "title",
        "company",
        "city",
        "state",
        "location",
        "posted_date",
        "posted_at",
        "found_time",
        "scraped_at",
        "fingerprint",
    ]
