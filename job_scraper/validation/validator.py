"""Qualification rules for extracted job records.

A record qualifies only when all three checks pass: structural
completeness, recency of its time token, and (when the service declares
one) the keyword allowlist.
"""

from dataclasses import dataclass, field
from typing import List

from job_scraper.config.models import ServiceDescriptor
from job_scraper.domain.models import JobRecord
from job_scraper.normalization.relative_time import is_recent

PLACEHOLDER_TITLE = "Jobs"
MIN_TITLE_LENGTH = 4


@dataclass
class ValidationResult:
    """Outcome of validating one record; ``reasons`` lists failed checks."""

    qualified: bool
    reasons: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.qualified


def _structural_problems(record: JobRecord) -> List[str]:
    title = record.title or ""
    problems = []
    if len(title) < MIN_TITLE_LENGTH:
        problems.append("title missing or too short")
    elif title == PLACEHOLDER_TITLE:
        problems.append("title is a placeholder")
    elif "Search" in title:
        problems.append("title looks like a search link")

    if not record.company and not record.location:
        problems.append("no company or location")
    return problems


def matches_allowlist(title: str, validation_words: List[str]) -> bool:
    """Case-insensitive substring match against the keyword allowlist.

    An empty allowlist accepts every title.
    """
    if not validation_words:
        return True
    lowered = (title or "").lower()
    return any(word.lower() in lowered for word in validation_words)


def validate_record(record: JobRecord, descriptor: ServiceDescriptor) -> ValidationResult:
    """Run every qualification check and collect the failures.

    Args:
        record: Candidate record built from one container
        descriptor: Service the record was scraped for

    Returns:
        ValidationResult; ``qualified`` is True only when ``reasons`` is empty
    """
    reasons = _structural_problems(record)

    if not is_recent(record.found_time, descriptor.threshold_hours):
        reasons.append(
            f"posted '{record.found_time}' is outside the {descriptor.threshold_hours}h window"
        )

    if not matches_allowlist(record.title, descriptor.validation_words):
        reasons.append("title matches no validation word")

    return ValidationResult(qualified=not reasons, reasons=reasons)


def is_qualified(record: JobRecord, descriptor: ServiceDescriptor) -> bool:
    """Whether a record passes every qualification check."""
    return validate_record(record, descriptor).qualified
