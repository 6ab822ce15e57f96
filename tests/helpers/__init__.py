"""Test helper utilities for job scraper tests."""

from .fixture_adapter import FIXTURES_DIR, FixtureAdapter, load_fixture_html

__all__ = ["FIXTURES_DIR", "FixtureAdapter", "load_fixture_html"]
