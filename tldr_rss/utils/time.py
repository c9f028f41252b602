from datetime import datetime, timedelta, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Any, Mapping, Optional
import calendar
import time

from tldr_rss.logging_config import logger


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def lookback_cutoff(lookback_days: int, now: Optional[datetime] = None) -> datetime:
    """Return the oldest publish date still inside the lookback window."""
    now = now or utc_now()
    return now - timedelta(days=lookback_days)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def convert_date_str_to_datetime(date_str: str) -> Optional[datetime]:
    """Parse an RSS/Atom date string to a UTC datetime, or None if it can't be parsed."""
    if not date_str:
        return None

    try:
        # Try parsing RFC 2822 format (common in RSS)
        return _as_utc(parsedate_to_datetime(date_str))
    except (TypeError, ValueError):
        pass

    try:
        # Try ISO format
        return _as_utc(datetime.fromisoformat(date_str.replace('Z', '+00:00')))
    except ValueError:
        logger.debug(f"Could not parse date '{date_str}'")
        return None


def entry_published_at(entry: Mapping[str, Any]) -> Optional[datetime]:
    """
    Resolve the publish date of a feedparser entry.

    Priority: published_parsed -> updated_parsed -> raw published/updated strings.
    """
    for key in ("published_parsed", "updated_parsed"):
        value = entry.get(key)
        if isinstance(value, time.struct_time):
            # feedparser normalizes *_parsed values to UTC
            return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)

    for key in ("published", "updated"):
        value = entry.get(key)
        if isinstance(value, str) and value:
            parsed = convert_date_str_to_datetime(value)
            if parsed is not None:
                return parsed
    return None


def to_rfc822(dt: datetime) -> str:
    """Format a datetime the way RSS pubDate expects (e.g. 'Mon, 15 Jan 2024 10:00:00 GMT')."""
    return format_datetime(_as_utc(dt), usegmt=True)


def to_iso8601(dt: datetime) -> str:
    """Format a datetime as ISO-8601 in UTC with millisecond precision and a 'Z' suffix."""
    return _as_utc(dt).isoformat(timespec='milliseconds').replace('+00:00', 'Z')
