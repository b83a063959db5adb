#!/usr/bin/env python3
"""
Date coercion helpers for date-typed filter properties.

Naive values are interpreted as UTC. Numbers are Unix timestamps in seconds.
"""

from datetime import datetime, timezone
from typing import Any, Optional


NULL_MARKERS = ("null", "")


def is_null_marker(value: Any) -> bool:
    """Check whether a raw value stands for an explicit null."""
    return value is None or (isinstance(value, str) and value in NULL_MARKERS)


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Convert a raw filter value to a timezone-aware datetime.

    Args:
        value: Can be:
            - None, "null" or "" (explicit null)
            - datetime object (naive values get UTC)
            - ISO string ("2019-01-01", "2019-01-01T10:00:00Z", ...)
            - Unix timestamp (int or float)

    Returns:
        datetime in UTC, or None for an explicit null

    Raises:
        ValueError: If the value cannot be read as a date
    """
    if is_null_marker(value):
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    # bool is an int subclass but never a date
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert boolean {value!r} to a date")

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Timestamp out of range: {value}") from e

    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError as e:
            raise ValueError(f"Cannot parse date string: {value!r}") from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    raise ValueError(f"Cannot convert {type(value).__name__} to a date")
