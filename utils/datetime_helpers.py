"""
Timezone-aware date/time helpers for the booking service.

All timestamps are normalised to aware UTC at second precision; any
microseconds are dropped by ``to_utc``. The API forms reject sub-second
input before it gets here.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from flask import current_app

# Storage format for timestamps (always UTC, second precision)
TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%S'


def get_timezone() -> ZoneInfo:
    """Get the configured timezone."""
    tz_name = current_app.config.get('TIMEZONE', 'UTC')
    return ZoneInfo(tz_name)


def get_now() -> datetime:
    """
    Get the current time as an aware UTC datetime.

    Uses the ``CLOCK`` callable from app config when one is set, so tests and
    the sweep scheduler can run against a controlled clock.
    """
    clock = current_app.config.get('CLOCK')
    now = clock() if clock else datetime.now(timezone.utc)
    return to_utc(now)


def to_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC with second precision.

    Naive values are interpreted in the configured timezone. Microseconds
    are truncated, so 10:00:00.900 becomes 10:00:00.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=get_timezone())
    return value.astimezone(timezone.utc).replace(microsecond=0)


def parse_timestamp(value) -> datetime:
    """
    Parse an ISO-8601 string (or datetime) into an aware UTC datetime.

    Args:
        value: ISO string such as '2025-03-01T10:00:00Z' or a datetime

    Returns:
        Aware UTC datetime

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f'Invalid timestamp: {value!r}')
    return to_utc(datetime.fromisoformat(value.strip()))


def to_db(value: datetime) -> str:
    """Format a datetime for storage."""
    return to_utc(value).strftime(TIMESTAMP_FORMAT)


def from_db(value: str) -> datetime:
    """Read a stored timestamp back as an aware UTC datetime."""
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def format_timestamp(value) -> str | None:
    """Render a stored timestamp (or datetime) as ISO-8601 with UTC offset."""
    if value is None:
        return None
    if isinstance(value, str):
        value = from_db(value)
    return to_utc(value).isoformat()
