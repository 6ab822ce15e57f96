"""Periodic execution of the scrape pipeline."""

from .service import SCRAPE_JOB_ID, ScrapeScheduler

__all__ = ["SCRAPE_JOB_ID", "ScrapeScheduler"]
