"""Shared fixtures for the job scraper test suite."""

from datetime import datetime, timezone

import pytest

from job_scraper.config.models import (
    AppConfig,
    ScraperConfig,
    ServiceDescriptor,
)
from job_scraper.logging.context import clear_log_context


@pytest.fixture(autouse=True)
def _reset_log_context():
    """Keep contextvars log context from leaking between tests."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def fixed_now():
    """Reference instant used for relative-time normalization."""
    return datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def plumber():
    return ServiceDescriptor(
        name="plumber",
        display_name="Plumbers",
        table="plumber_jobs",
        validationWords=["plumber"],
    )


@pytest.fixture
def electrician():
    return ServiceDescriptor(
        name="electrician",
        display_name="Electricians",
        table="electrician_jobs",
        validationWords=["electrician"],
        maxHoursWindow=3,
    )


@pytest.fixture
def utc_scraper_config():
    """Scraper settings pinned to UTC so timestamps are deterministic."""
    return ScraperConfig(timezone="UTC", delay_between_services=0)


@pytest.fixture
def app_config(plumber, electrician, utc_scraper_config):
    return AppConfig(
        services=[plumber, electrician],
        scraper=utc_scraper_config,
        notifications={"enabled": False},
        output={"enabled": False},
        storage={"backend": "none"},
    )
