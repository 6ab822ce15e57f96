"""Record fingerprints and in-batch de-duplication.

The fingerprint is the identity key shared by dedup and the store's
upsert conflict target: SHA-256 over title, location and service name.
"""

import hashlib
from typing import Iterable, List, Protocol, TypeVar


class _Fingerprinted(Protocol):
    fingerprint: str


RecordT = TypeVar("RecordT", bound=_Fingerprinted)


def compute_fingerprint(title: str, location: str, service: str) -> str:
    """Compute the identity key of a job record.

    The three inputs are joined with newlines before hashing. Extracted
    field text never contains newlines (whitespace is collapsed), so the
    join is unambiguous.

    Args:
        title: Job title
        location: Raw location string ("" when absent)
        service: Service name the record was scraped for

    Returns:
        Hexadecimal SHA256 digest (64 characters)

    Example:
        >>> compute_fingerprint("Plumber", "Austin, TX", "plumber") == \\
        ...     compute_fingerprint("Plumber", "Austin, TX", "plumber")
        True
    """
    composite = "\n".join((title or "", location or "", service or ""))
    return hashlib.sha256(composite.encode("utf-8")).hexdigest()


def dedup_batch(records: Iterable[RecordT]) -> List[RecordT]:
    """Drop records whose fingerprint was already seen in the batch.

    Keeps the first occurrence, so document order is preserved. Applying
    it twice gives the same result as applying it once.
    """
    seen = set()
    unique = []
    for record in records:
        if record.fingerprint in seen:
            continue
        seen.add(record.fingerprint)
        unique.append(record)
    return unique
