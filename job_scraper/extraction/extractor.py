"""Per-document extraction: markup plus service descriptor to qualified records.

Containers are processed in document order. A container that raises while
its fields are read is skipped without consuming a time token; every other
container consumes one, whether or not it later qualifies. Any error in a
container marks it ``failed`` and the batch continues.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from job_scraper.config.models import (
    ScraperConfig,
    SelectorConfig,
    ServiceDescriptor,
    TimeAssignment,
)
from job_scraper.domain.models import JobRecord
from job_scraper.logging import get_logger
from job_scraper.normalization.relative_time import normalize
from job_scraper.utils.hashing import compute_fingerprint, dedup_batch
from job_scraper.utils.timestamps import format_timestamp, utc_now
from job_scraper.validation.validator import validate_record

from .selectors import FieldKind, SelectorCascade, extract_field, find_containers, parse_location
from .tokens import TokenPool, find_container_token

logger = get_logger(__name__, component="extraction")


@dataclass
class ContainerOutcome:
    """What happened to one container.

    ``status`` is one of ``qualified``, ``rejected`` (failed validation),
    ``duplicate`` (fingerprint already seen in this document) or ``failed``
    (raised while being processed).
    """

    index: int
    status: str
    record: Optional[JobRecord] = None
    reasons: List[str] = field(default_factory=list)
    token_source: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "qualified"


@dataclass
class ExtractionResult:
    """Qualified records for one document plus the raw container count."""

    jobs: List[JobRecord]
    total_found: int
    outcomes: List[ContainerOutcome] = field(default_factory=list)

    @property
    def qualified_count(self) -> int:
        return len(self.jobs)

    def count_by_status(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for outcome in self.outcomes:
            counts[outcome.status] = counts.get(outcome.status, 0) + 1
        return counts


class JobExtractor:
    """Turns one search-result document into qualified job records.

    Holds configuration only; all per-document state (parsed tree, token
    pool) lives inside a single ``extract`` call.
    """

    def __init__(
        self,
        scraper_config: Optional[ScraperConfig] = None,
        selector_config: Optional[SelectorConfig] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize the extractor.

        Args:
            scraper_config: max_jobs, timezone and time-assignment settings
            selector_config: Selector lists (Google Jobs layout by default)
            logger_instance: Logger instance (defaults to module logger)
        """
        self.scraper_config = scraper_config or ScraperConfig()
        self.cascade = SelectorCascade.from_config(selector_config or SelectorConfig())
        self.tz = self.scraper_config.get_tzinfo()
        self.container_first = (
            self.scraper_config.time_assignment == TimeAssignment.CONTAINER_FIRST.value
        )
        self.logger = logger_instance or logger

    def extract(
        self,
        html: Optional[str],
        descriptor: ServiceDescriptor,
        now: Optional[datetime] = None,
    ) -> ExtractionResult:
        """Extract, validate and de-duplicate the jobs in one document.

        Args:
            html: Document markup
            descriptor: Service the document was fetched for
            now: Reference instant for relative times (defaults to utc_now())

        Returns:
            ExtractionResult; ``total_found`` counts every matched container,
            before the max_jobs cap and before validation
        """
        now = now or utc_now()

        try:
            document = BeautifulSoup(html or "", "html.parser")
            containers = find_containers(document, self.cascade.containers)
        except Exception as e:
            self.logger.error(
                f"Could not parse document for {descriptor.display_name}: {e}",
                extra={
                    "event": "extraction.document.failed",
                    "service_name": descriptor.name,
                    "error_type": type(e).__name__,
                },
            )
            return ExtractionResult(jobs=[], total_found=0)

        if not containers:
            self.logger.warning(
                f"No job containers found for {descriptor.display_name}",
                extra={"event": "extraction.containers.none", "service_name": descriptor.name},
            )
            return ExtractionResult(jobs=[], total_found=0)

        total_found = len(containers)
        if self.scraper_config.max_jobs:
            containers = containers[: self.scraper_config.max_jobs]

        pool = TokenPool.from_document(document)
        scraped_at = format_timestamp(now)

        outcomes = [
            self._process_container(index, container, descriptor, pool, now, scraped_at)
            for index, container in enumerate(containers)
        ]
        jobs = self._dedup(outcomes)

        self._check_token_alignment(descriptor, pool, outcomes)

        result = ExtractionResult(jobs=jobs, total_found=total_found, outcomes=outcomes)
        self.logger.info(
            f"Extracted {len(jobs)} qualified jobs from {total_found} containers "
            f"for {descriptor.display_name}",
            extra={
                "event": "extraction.document.completed",
                "service_name": descriptor.name,
                "total_found": total_found,
                "processed": len(containers),
                "qualified": len(jobs),
                "tokens_found": pool.total,
                "fallback_tokens": pool.fallbacks_used,
                **{f"status_{status}": count for status, count in result.count_by_status().items()},
            },
        )
        return result

    def _process_container(
        self,
        index: int,
        container: Tag,
        descriptor: ServiceDescriptor,
        pool: TokenPool,
        now: datetime,
        scraped_at: str,
    ) -> ContainerOutcome:
        try:
            return self._build_outcome(index, container, descriptor, pool, now, scraped_at)
        except Exception as e:
            self.logger.warning(
                f"Skipping container {index}: {e}",
                extra={
                    "event": "extraction.container.failed",
                    "service_name": descriptor.name,
                    "container_index": index,
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            return ContainerOutcome(index=index, status="failed", reasons=[str(e)])

    def _build_outcome(
        self,
        index: int,
        container: Tag,
        descriptor: ServiceDescriptor,
        pool: TokenPool,
        now: datetime,
        scraped_at: str,
    ) -> ContainerOutcome:
        title = extract_field(container, FieldKind.TITLE, self.cascade) or ""
        company = extract_field(container, FieldKind.COMPANY, self.cascade) or ""
        location = extract_field(container, FieldKind.LOCATION, self.cascade) or ""
        city, state = parse_location(location)

        found_time, token_source = self._assign_token(container, pool)
        posted = normalize(found_time, now, self.tz)

        record = JobRecord(
            service=descriptor.name,
            service_display_name=descriptor.display_name,
            title=title,
            company=company,
            city=city,
            state=state,
            location=location,
            posted_date=posted.local,
            posted_at=posted.iso,
            found_time=found_time,
            scraped_at=scraped_at,
            fingerprint=compute_fingerprint(title, location, descriptor.name),
        )

        validation = validate_record(record, descriptor)
        if not validation.qualified:
            self.logger.debug(
                f"Rejected container {index}: {'; '.join(validation.reasons)}",
                extra={
                    "event": "extraction.container.rejected",
                    "service_name": descriptor.name,
                    "container_index": index,
                    "title": title,
                    "found_time": found_time,
                },
            )
            return ContainerOutcome(
                index=index,
                status="rejected",
                record=record,
                reasons=validation.reasons,
                token_source=token_source,
            )

        self.logger.debug(
            f"{descriptor.display_name} : {title} : {location or 'Unknown Location'} : {found_time}",
            extra={
                "event": "extraction.container.qualified",
                "service_name": descriptor.name,
                "container_index": index,
            },
        )
        return ContainerOutcome(
            index=index, status="qualified", record=record, token_source=token_source
        )

    def _assign_token(self, container: Tag, pool: TokenPool) -> tuple[str, str]:
        if self.container_first:
            token = find_container_token(
                container, self.cascade.for_field(FieldKind.POSTED_TIME)
            )
            if token:
                return token, "container"
        remaining_before = pool.remaining
        token = pool.take()
        return token, "pool" if remaining_before else "fallback"

    @staticmethod
    def _dedup(outcomes: List[ContainerOutcome]) -> List[JobRecord]:
        qualified = [outcome for outcome in outcomes if outcome.ok]
        unique = dedup_batch(outcome.record for outcome in qualified)
        kept = {id(record) for record in unique}
        for outcome in qualified:
            if id(outcome.record) not in kept:
                outcome.status = "duplicate"
                outcome.reasons = ["fingerprint already seen in this document"]
        return unique

    def _check_token_alignment(
        self,
        descriptor: ServiceDescriptor,
        pool: TokenPool,
        outcomes: List[ContainerOutcome],
    ) -> None:
        positional = sum(1 for o in outcomes if o.token_source in ("pool", "fallback"))
        if self.container_first:
            mismatch = pool.fallbacks_used > 0
        else:
            mismatch = positional != pool.total

        if mismatch:
            self.logger.warning(
                f"Time tokens and containers disagree for {descriptor.display_name}: "
                f"{pool.total} tokens, {positional} containers paired positionally",
                extra={
                    "event": "extraction.tokens.count_mismatch",
                    "service_name": descriptor.name,
                    "tokens_found": pool.total,
                    "positional_containers": positional,
                    "fallback_tokens": pool.fallbacks_used,
                },
            )
