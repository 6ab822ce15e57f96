"""Hands a qualified batch to the store, with the one-shot column retry."""

from typing import Any, Dict, List, Sequence

from job_scraper.config.models import ServiceDescriptor
from job_scraper.domain.models import JobRecord
from job_scraper.logging import get_logger
from job_scraper.utils.hashing import dedup_batch

from .exceptions import SchemaMismatchError
from .schema import OPTIONAL_COLUMNS
from .store import JobStore

logger = get_logger(__name__, component="store")


def build_store_rows(
    descriptor: ServiceDescriptor, records: Sequence[JobRecord]
) -> List[Dict[str, Any]]:
    """Map records to the store row layout.

    ``source_url`` is always None; search results carry no posting link.
    """
    return [
        {
            "title": record.title,
            "job_name": descriptor.display_name,
            "posted_at": record.posted_at,
            "location": record.location,
            "city": record.city,
            "state": record.state,
            "source_url": None,
            "fingerprint": record.fingerprint,
            "found_time": record.found_time,
        }
        for record in records
    ]


def persist_batch(
    store: JobStore, descriptor: ServiceDescriptor, records: Sequence[JobRecord]
) -> int:
    """Upsert a batch into the descriptor's table.

    If the store reports a missing optional column, the same batch is sent
    once more without that column. Any other failure, or a second mismatch,
    propagates.

    Args:
        store: Store collaborator
        descriptor: Service whose table receives the rows
        records: Qualified records

    Returns:
        Number of rows the store reports as written

    Raises:
        PersistenceError: If the store rejects the batch
    """
    records = dedup_batch(records)
    if not records:
        return 0

    rows = build_store_rows(descriptor, records)
    try:
        return store.upsert_jobs(descriptor.table, rows)
    except SchemaMismatchError as e:
        if e.column not in OPTIONAL_COLUMNS:
            raise

        logger.warning(
            f"Table {descriptor.table} has no '{e.column}' column; retrying without it",
            extra={
                "event": "store.retry.stripped_column",
                "table": descriptor.table,
                "column": e.column,
                "rows": len(rows),
            },
        )
        stripped = [{k: v for k, v in row.items() if k != e.column} for row in rows]
        return store.upsert_jobs(descriptor.table, stripped)
