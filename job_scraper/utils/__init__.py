"""Utility functions for fingerprints and time handling."""

from .hashing import compute_fingerprint, dedup_batch
from .timestamps import ensure_utc, file_stamp, format_timestamp, utc_now

__all__ = [
    # Hashing
    "compute_fingerprint",
    "dedup_batch",
    # Timestamps
    "utc_now",
    "ensure_utc",
    "format_timestamp",
    "file_stamp",
]
