"""Utility functions for win11-readiness-hub."""

import uuid
from datetime import datetime
from typing import Any

import pytz


def utcnow() -> datetime:
    """
    Get current UTC time with timezone awareness.

    Returns:
        datetime: Current UTC time with timezone info
    """
    return datetime.now(pytz.UTC)


def isoformat_utc(value: datetime) -> str:
    """
    Format a datetime as ISO 8601 without microseconds, with a trailing Z.

    Naive datetimes are assumed to already be in UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(pytz.UTC).replace(tzinfo=None)
    return value.replace(microsecond=0).isoformat() + 'Z'


def new_report_id() -> str:
    """Generate an identifier for a stored report."""
    return uuid.uuid4().hex


def clean_text(value: Any) -> str:
    """
    Coerce a spreadsheet cell value to a stripped string.

    Args:
        value: Raw cell value (may be None or a number)

    Returns:
        str: Stripped string, empty for None
    """
    if value is None:
        return ''
    return str(value).strip()
