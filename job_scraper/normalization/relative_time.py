"""Relative-time tokens ("2 hours ago") to timestamps, and the recency window.

Local timestamps use the canonical ``YYYY-MM-DD HH:MM AM/PM`` form. The ISO
value is the same instant in UTC, truncated to the minute like the local
string.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Optional

from job_scraper.config.models import DEFAULT_MAX_HOURS_WINDOW
from job_scraper.logging import get_logger
from job_scraper.utils.timestamps import ensure_utc, format_timestamp

logger = get_logger(__name__, component="normalization")

_QUANTITY_PATTERN = re.compile(r"(\d+)\s*([a-z]+)")
_LOCAL_PATTERN = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2}) (\d{1,2}):(\d{2}) ([AP]M)$", re.IGNORECASE
)

_UNIT_ALIASES = {
    "min": "minute",
    "mins": "minute",
    "minute": "minute",
    "minutes": "minute",
    "hr": "hour",
    "hrs": "hour",
    "hour": "hour",
    "hours": "hour",
    "day": "day",
    "days": "day",
    "week": "week",
    "weeks": "week",
    "month": "month",
    "months": "month",
}

# Units the normalizer can subtract; anything else normalizes to "now"
_UNIT_DELTAS = {
    "minute": lambda n: timedelta(minutes=n),
    "hour": lambda n: timedelta(hours=n),
    "day": lambda n: timedelta(days=n),
}


@dataclass(frozen=True)
class RelativeTime:
    """A parsed relative-time token, e.g. ``RelativeTime(2, "hour")``."""

    value: int
    unit: str


@dataclass(frozen=True)
class NormalizedTime:
    """Absolute form of a relative-time token."""

    local: str
    iso: str


def parse_relative_time(token: Optional[str]) -> Optional[RelativeTime]:
    """Pull the first ``<int> <unit>`` pair out of a token.

    Returns:
        RelativeTime with a canonical unit, or None when nothing matches
    """
    if not token:
        return None

    for match in _QUANTITY_PATTERN.finditer(token.lower()):
        unit = _UNIT_ALIASES.get(match.group(2))
        if unit:
            return RelativeTime(int(match.group(1)), unit)
    return None


def _to_local(now: datetime, tz: Optional[tzinfo]) -> datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=tz) if tz else now.astimezone()
    return now.astimezone(tz) if tz else now.astimezone()


def format_local_timestamp(dt: datetime) -> str:
    """Render a datetime as ``YYYY-MM-DD HH:MM AM/PM``.

    Midnight and noon both render with hour ``12``.

    Example:
        >>> format_local_timestamp(datetime(2025, 1, 1, 0, 5))
        '2025-01-01 12:05 AM'
    """
    hour12 = dt.hour % 12 or 12
    meridiem = "PM" if dt.hour >= 12 else "AM"
    return f"{dt:%Y-%m-%d} {hour12:02d}:{dt.minute:02d} {meridiem}"


def parse_local_timestamp(local: str, tz: Optional[tzinfo] = None) -> datetime:
    """Parse a ``YYYY-MM-DD HH:MM AM/PM`` string back to an aware datetime.

    Args:
        local: Canonical local timestamp
        tz: Zone the string is expressed in (system zone when None)

    Raises:
        ValueError: If the string is not in the canonical form
    """
    match = _LOCAL_PATTERN.match((local or "").strip())
    if not match:
        raise ValueError(f"Not a local timestamp: {local!r}")

    year, month, day, hour, minute, meridiem = match.groups()
    hour24 = int(hour) % 12
    if meridiem.upper() == "PM":
        hour24 += 12

    naive = datetime(int(year), int(month), int(day), hour24, int(minute))
    return naive.replace(tzinfo=tz) if tz else naive.astimezone()


def normalize(token: Optional[str], now: datetime, tz: Optional[tzinfo] = None) -> NormalizedTime:
    """Convert a relative-time token to local and ISO-8601 UTC timestamps.

    Minutes, hours and days are subtracted from ``now`` as elapsed time.
    Tokens that do not parse, use another unit, or reach past the
    representable date range normalize to ``now``.

    Args:
        token: Relative-time token such as "2 hours ago"
        now: Reference instant; naive values are read in ``tz``
        tz: Local zone for the ``local`` string (system zone when None)

    Returns:
        NormalizedTime(local, iso)

    Example:
        >>> from zoneinfo import ZoneInfo
        >>> utc = ZoneInfo("UTC")
        >>> normalize("2 hours ago", datetime(2025, 3, 1, 1, 30, tzinfo=utc), utc)
        NormalizedTime(local='2025-02-28 11:30 PM', iso='2025-02-28T23:30:00Z')
    """
    local_now = _to_local(now, tz)
    parsed = parse_relative_time(token)

    posted = local_now
    if parsed and parsed.unit in _UNIT_DELTAS:
        try:
            delta = _UNIT_DELTAS[parsed.unit](parsed.value)
            posted = (ensure_utc(local_now) - delta).astimezone(local_now.tzinfo)
        except OverflowError:
            logger.warning(
                f"Relative time out of range, using now: {token!r}",
                extra={"event": "normalization.token.out_of_range", "token": token},
            )

    local = format_local_timestamp(posted)
    iso = format_timestamp(posted.replace(second=0, microsecond=0))
    return NormalizedTime(local=local, iso=iso)


def is_recent(token: Optional[str], threshold_hours: Optional[int] = DEFAULT_MAX_HOURS_WINDOW) -> bool:
    """Whether a relative-time token falls inside the freshness window.

    Minutes are always recent. Hours are recent when the value is at most
    ``threshold_hours``. Days, weeks and unparseable tokens never are.
    A missing or non-positive threshold falls back to the default window.
    """
    parsed = parse_relative_time(token)
    if parsed is None:
        return False

    if threshold_hours is None or threshold_hours <= 0:
        threshold_hours = DEFAULT_MAX_HOURS_WINDOW

    if parsed.unit == "minute":
        return True
    if parsed.unit == "hour":
        return parsed.value <= threshold_hours
    return False
