"""Fixture-based adapter for testing.

Serves saved search-result documents from tests/fixtures instead of calling
the scraping API, so pipeline tests run deterministically and offline.
"""

from pathlib import Path
from typing import Dict, List

from job_scraper.adapters.base import BaseAdapter
from job_scraper.adapters.exceptions import AdapterHTTPError
from job_scraper.config.models import ServiceDescriptor

FIXTURES_DIR = Path(__file__).resolve().parent.parent / "fixtures"


def load_fixture_html(name: str) -> str:
    """Read a fixture document by file name (e.g. "google_jobs.html").

    Raises:
        FileNotFoundError: If the fixture doesn't exist
    """
    path = FIXTURES_DIR / name
    if not path.exists():
        raise FileNotFoundError(f"Fixture file not found: {path}")
    return path.read_text(encoding="utf-8")


class FixtureAdapter(BaseAdapter):
    """Adapter that maps service names to fixture documents.

    Services without a mapped document fail with a 404 AdapterHTTPError,
    the same way an unreachable page would.

    Attributes:
        documents: Service name -> fixture file name
        fetched: Service names in the order they were fetched
    """

    def __init__(self, documents: Dict[str, str], **kwargs):
        super().__init__(**kwargs)
        self.documents = documents
        self.fetched: List[str] = []

    def fetch_page_html(self, descriptor: ServiceDescriptor) -> str:
        self.fetched.append(descriptor.name)
        fixture = self.documents.get(descriptor.name)
        if fixture is None:
            raise AdapterHTTPError(
                f"No fixture for service '{descriptor.name}'",
                status_code=404,
                url=f"fixture://{descriptor.name}",
            )
        return load_fixture_html(fixture)
