"""Clock and timestamp helpers.

All timestamps in the report are wall-clock strings in ``TIME_FORMAT``,
which sort correctly as plain strings.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Callable

__all__ = [
    "BEIJING_TZ",
    "Clock",
    "TIME_FORMAT",
    "beijing_now",
    "format_timestamp",
    "now_string",
    "parse_feed_time",
    "parse_timestamp",
]

BEIJING_TZ = timezone(timedelta(hours=8))
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

#: Returns the current time; injected so that callers can be tested with a fixed clock.
Clock = Callable[[], datetime]

# Tried in order after the RFC 822 parser.
FEED_TIME_FORMATS = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%d %H:%M:%S",
)


def beijing_now() -> datetime:
    """Return the current time in UTC+8."""

    return datetime.now(BEIJING_TZ)


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIME_FORMAT)


def now_string(clock: Clock = beijing_now) -> str:
    return format_timestamp(clock())


def _parse_rfc822(raw: str) -> datetime | None:
    try:
        parsed = parsedate_to_datetime(raw)
    except (TypeError, ValueError, IndexError):
        return None
    return parsed


def parse_feed_time(raw: str) -> str:
    """Normalize a feed timestamp, or return ``""`` when no known format matches.

    The wall-clock time is kept in the offset the feed declares; it is not
    converted to another zone.
    """

    text = raw.strip()
    if not text:
        return ""

    parsed = _parse_rfc822(text)
    if parsed is not None:
        return format_timestamp(parsed)

    for fmt in FEED_TIME_FORMATS:
        try:
            return format_timestamp(datetime.strptime(text, fmt))
        except ValueError:
            continue
    return ""


def parse_timestamp(value: str) -> datetime | None:
    """Parse a normalized ``TIME_FORMAT`` string back into a naive datetime."""

    try:
        return datetime.strptime(value, TIME_FORMAT)
    except ValueError:
        return None
