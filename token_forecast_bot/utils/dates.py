"""
Date utilities for selection payloads and interval arithmetic.

Selection dates arrive from the date picker as ``YYYY/MM/DD`` strings. They
are treated as plain calendar dates: no time of day, no timezone. Wall-clock
time is only used for operational purposes such as conversation expiry.
"""

from datetime import date, datetime, timezone
from typing import Optional

SELECTION_DATE_FORMAT = "%Y/%m/%d"

# ISO form accepted as well, the picker never emits it but typed dates might
_ACCEPTED_FORMATS = (SELECTION_DATE_FORMAT, "%Y-%m-%d")


def parse_selection_date(value: str) -> Optional[date]:
    """
    Parse a selection payload into a calendar date.

    Args:
        value: Raw payload, expected as YYYY/MM/DD

    Returns:
        Parsed date, or None if the payload is not a valid calendar date
    """
    if not isinstance(value, str):
        return None

    text = value.strip()
    for fmt in _ACCEPTED_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    return None


def format_selection_date(value: date) -> str:
    """Format a date the way the date picker emits it."""
    return value.strftime(SELECTION_DATE_FORMAT)


def calendar_days_between(later: date, earlier: date) -> int:
    """
    Count whole calendar days from ``earlier`` to ``later``.

    Negative when ``later`` actually precedes ``earlier``.
    """
    return (later - earlier).days


def get_wall_clock_time() -> datetime:
    """Current UTC time, used for bookkeeping only."""
    return datetime.now(timezone.utc)


def time_elapsed_seconds(start_time: datetime, end_time: Optional[datetime] = None) -> float:
    """
    Calculate elapsed seconds between two wall-clock timestamps.

    Args:
        start_time: Start timestamp
        end_time: End timestamp, defaults to now

    Returns:
        Elapsed time in seconds
    """
    if end_time is None:
        end_time = get_wall_clock_time()

    return (end_time - start_time).total_seconds()
