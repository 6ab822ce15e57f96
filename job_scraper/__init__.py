"""Job scraper: search-result job extraction, validation and delivery."""

__version__ = "0.1.0"
