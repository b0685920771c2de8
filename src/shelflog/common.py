#!/usr/bin/env python3
"""
Common utilities for shelflog

Shared helpers for timestamps, rounding and human-readable formatting.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TypeAlias

from .constants import TIMESTAMP_FORMAT

# Common type aliases
BookId: TypeAlias = int
SessionId: TypeAlias = int
Clock: TypeAlias = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: current time in UTC."""
    return datetime.now(UTC)


def format_timestamp(moment: datetime) -> str:
    """
    Format a datetime for storage.

    Naive datetimes are assumed to already be UTC.

    Args:
        moment: Datetime to format

    Returns:
        str: UTC timestamp such as "2024-03-15 12:00:00"
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(UTC)
    return moment.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Parse a stored timestamp back into an aware UTC datetime."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round with halves going away from zero (2.5 -> 3), unlike round().

    Args:
        value: Number to round
        digits: Decimal places to keep

    Returns:
        float: Rounded value
    """
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def pluralize(count: int, word: str) -> str:
    """Return correct singular/plural form of a word."""
    return word if count == 1 else f"{word}s"


def format_duration(seconds: float) -> str:
    """
    Format duration as human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        str: Formatted duration (e.g., "45s", "2m 30s", "1h 15m")
    """
    if seconds < 60:
        return f"{int(seconds)}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        remaining_seconds = seconds % 60
        return f"{minutes}m {remaining_seconds:.0f}s"
    else:
        hours = int(seconds // 3600)
        remaining_minutes = int((seconds % 3600) // 60)
        return f"{hours}h {remaining_minutes}m"
