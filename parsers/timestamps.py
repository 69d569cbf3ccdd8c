"""Timestamp helpers for the fixed ENEX date format and its textual renderings."""

from datetime import datetime, timezone
from typing import Optional

from exceptions import TimestampParseFailure

ENEX_TIMESTAMP_FORMAT = '%Y%m%dT%H%M%SZ'


def parse_enex_timestamp(value: Optional[str]) -> datetime:
    """
    Parse an ENEX timestamp (``yyyyMMdd'T'HHmmss'Z'``) as an aware UTC datetime.

    Args:
        value: Raw element text, e.g. ``20250122T120000Z``

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        TimestampParseFailure: If the value is missing or malformed
    """
    if value is None:
        raise TimestampParseFailure("Missing timestamp value")

    try:
        parsed = datetime.strptime(value.strip(), ENEX_TIMESTAMP_FORMAT)
    except ValueError as e:
        raise TimestampParseFailure(f"Invalid ENEX timestamp '{value}': {e}") from e

    return parsed.replace(tzinfo=timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_iso_timestamp(value: datetime) -> str:
    """Render a timestamp for front matter, e.g. ``2025-01-22T12:00:00Z``."""
    return _as_utc(value).strftime('%Y-%m-%dT%H:%M:%SZ')


def describe_timestamp(value: Optional[datetime]) -> str:
    """
    Textual description used as the identifier key prefix.

    Produces ``2025-01-22 12:00:00 +0000`` for a timestamp and an empty
    string for ``None``. Changing this changes every exported note id.
    """
    if value is None:
        return ''
    return _as_utc(value).strftime('%Y-%m-%d %H:%M:%S +0000')


__all__ = [
    'ENEX_TIMESTAMP_FORMAT',
    'parse_enex_timestamp',
    'format_iso_timestamp',
    'describe_timestamp'
]
