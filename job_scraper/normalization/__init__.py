"""Relative-time normalization and the recency window filter."""

from .relative_time import (
    NormalizedTime,
    RelativeTime,
    format_local_timestamp,
    is_recent,
    normalize,
    parse_local_timestamp,
    parse_relative_time,
)

__all__ = [
    "NormalizedTime",
    "RelativeTime",
    "format_local_timestamp",
    "is_recent",
    "normalize",
    "parse_local_timestamp",
    "parse_relative_time",
]
