"""Adapters that fetch search-result pages."""

from .base import BaseAdapter
from .exceptions import (
    AdapterConfigurationError,
    AdapterError,
    AdapterHTTPError,
    AdapterResponseError,
    AdapterTimeoutError,
)
from .scraper_api import ScraperAPIAdapter

__all__ = [
    "BaseAdapter",
    "ScraperAPIAdapter",
    "AdapterError",
    "AdapterHTTPError",
    "AdapterTimeoutError",
    "AdapterResponseError",
    "AdapterConfigurationError",
]
