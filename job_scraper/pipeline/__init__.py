"""Pipeline orchestration for scrape runs."""

from .models import PipelineRunResult, ServiceRunStats
from .runner import ScrapePipeline

__all__ = ["PipelineRunResult", "ScrapePipeline", "ServiceRunStats"]
