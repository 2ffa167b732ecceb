"""
Time utilities for the weekly stats pipeline.

Provides functions for:
- ISO-8601 week keys (Thursday-anchored year attribution)
- UTC week window boundaries (Monday 00:00:00)
- Parsing and formatting ISO-8601 timestamps
"""

import math
from datetime import datetime, timezone, timedelta
from typing import Optional, Tuple
from aws_lambda_powertools import Logger

logger = Logger(child=True)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Naive datetimes are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def week_key(now: datetime) -> str:
    """
    Get the ISO-8601 week key for a moment.

    The date is shifted to the Thursday of its ISO week; that Thursday's
    year is the ISO year, which puts Dec 29-31 and Jan 1-3 in the right year.

    Args:
        now: Moment to classify (converted to UTC)

    Returns:
        Week key string in format: YYYY-Www
    """
    day = to_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)
    # isoweekday: Monday = 1, Sunday = 7
    thursday = day + timedelta(days=4 - day.isoweekday())
    iso_year = thursday.year
    year_start = datetime(iso_year, 1, 1, tzinfo=timezone.utc)
    days_since_year_start = (thursday - year_start).days
    week_no = math.ceil((days_since_year_start + 1) / 7)
    return f"{iso_year}-W{week_no:02d}"


def week_start(now: datetime) -> datetime:
    """
    Get the start of the ISO week containing a moment.

    Plain Monday boundary, independent of the Thursday shift in week_key().

    Args:
        now: Moment to align (converted to UTC)

    Returns:
        Monday 00:00:00 UTC of the week
    """
    day = to_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)
    return day - timedelta(days=day.isoweekday() - 1)


def get_week_window(now: datetime) -> Tuple[datetime, datetime]:
    """
    Get the week window boundaries for a moment.

    Returns:
        Tuple of (week_start, week_end), end exclusive
    """
    start = week_start(now)
    return start, start + timedelta(days=7)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp as written by the API handlers.

    Accepts a trailing "Z". Values without an offset are taken as UTC.

    Args:
        value: Timestamp string, e.g. "2024-01-15T10:00:00.000Z"

    Returns:
        Aware UTC datetime, or None if missing or unparseable
    """
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"

    try:
        return to_utc(datetime.fromisoformat(text))
    except ValueError:
        logger.debug("Unparseable timestamp", extra={"value": value})
        return None


def format_timestamp(dt: datetime) -> str:
    """
    Format a datetime as an ISO-8601 UTC string with millisecond precision.

    Example: 2024-01-15T10:00:00.000Z
    """
    utc = to_utc(dt)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)
