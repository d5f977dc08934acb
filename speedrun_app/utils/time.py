"""
Time helpers shared by the run manager, the store and presentation layers.

Durations are handled as integer nanoseconds. Timestamps are derived from the
same nanosecond clock reading so that start/end times and split durations
can never disagree.
"""

from datetime import datetime, timezone
from typing import Optional

NANOS_PER_SECOND = 1_000_000_000
NANOS_PER_MINUTE = 60 * NANOS_PER_SECOND
NANOS_PER_HOUR = 60 * NANOS_PER_MINUTE


def ns_to_datetime(ns: int) -> datetime:
    """
    Convert a nanosecond epoch reading to a UTC datetime.

    Args:
        ns: Nanoseconds since the Unix epoch

    Returns:
        Timezone-aware UTC datetime (microsecond precision)
    """
    seconds, remainder = divmod(ns, NANOS_PER_SECOND)
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(
        microsecond=remainder // 1000
    )


def format_timestamp(ts: datetime) -> str:
    """
    Format a timestamp for storage.

    Args:
        ts: Timezone-aware datetime

    Returns:
        ISO 8601 string with UTC offset
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.isoformat()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO 8601 timestamp, returning None for empty values."""
    if not value:
        return None
    return datetime.fromisoformat(value)


def format_duration(ns: int) -> str:
    """
    Format a duration for split columns.

    Returns "m:ss.cc" once a minute has passed, "s.cc" before that.
    """
    minutes, remainder = divmod(ns, NANOS_PER_MINUTE)
    seconds, remainder = divmod(remainder, NANOS_PER_SECOND)
    centiseconds = remainder // 10_000_000

    if minutes > 0:
        return f"{minutes}:{seconds:02d}.{centiseconds:02d}"
    return f"{seconds}.{centiseconds:02d}"


def format_duration_long(ns: int) -> str:
    """
    Format a duration for the main timer.

    Returns "h:mm:ss.cc" once an hour has passed, "mm:ss.cc" before that.
    """
    hours, remainder = divmod(ns, NANOS_PER_HOUR)
    minutes, remainder = divmod(remainder, NANOS_PER_MINUTE)
    seconds, remainder = divmod(remainder, NANOS_PER_SECOND)
    centiseconds = remainder // 10_000_000

    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}.{centiseconds:02d}"
    return f"{minutes:02d}:{seconds:02d}.{centiseconds:02d}"
