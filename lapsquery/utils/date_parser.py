"""
Date parsing utilities for lapsquery.

Active Directory stores LAPS expiration times as Windows FILETIME values
(100-nanosecond intervals since January 1, 1601 UTC). This module converts
them to timezone-aware datetimes and handles the ISO 8601 text used in the
JSON documents.
"""

from datetime import datetime, timedelta, timezone
from typing import Union

# Windows FILETIME epoch: January 1, 1601 00:00:00 UTC
FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)

# Sentinel for "no expiration recorded" (not "expires immediately")
NO_EXPIRATION = datetime.min.replace(tzinfo=timezone.utc)


def filetime_to_datetime(filetime: Union[str, int]) -> datetime:
    """
    Convert a Windows FILETIME to an aware UTC datetime.

    Integer arithmetic is used so the result is exact to the microsecond;
    the sub-microsecond remainder is truncated.

    Args:
        filetime: FILETIME as an integer or its decimal string form

    Returns:
        datetime in UTC

    Raises:
        ValueError: If the value is not an integer or is negative
        OverflowError: If the value lies beyond datetime.max
    """
    if isinstance(filetime, str) and not (filetime.isascii() and filetime.isdigit()):
        raise ValueError(f"FILETIME must be a decimal integer: {filetime!r}")

    ticks = int(filetime)
    if ticks < 0:
        raise ValueError(f"FILETIME cannot be negative: {ticks}")

    return FILETIME_EPOCH + timedelta(microseconds=ticks // 10)


def datetime_to_filetime(dt: datetime) -> int:
    """
    Convert a datetime back to a Windows FILETIME.

    Naive datetimes are taken as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    delta = dt - FILETIME_EPOCH
    micros = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
    return micros * 10


def format_iso_date(dt: datetime) -> str:
    """Format an aware datetime as ISO 8601 with an explicit offset."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def parse_iso_date(date_str: str) -> datetime:
    """
    Parse an ISO 8601 date string into an aware datetime.

    Handles the 'Z' suffix and explicit offsets. Strings without an offset
    are taken as UTC.

    Raises:
        ValueError: If the string is not ISO 8601
        TypeError: If date_str is not a string
    """
    if not isinstance(date_str, str):
        raise TypeError(f"Expected an ISO 8601 string, got {type(date_str).__name__}")

    clean_str = date_str[:-1] + "+00:00" if date_str.endswith("Z") else date_str
    dt = datetime.fromisoformat(clean_str)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt
