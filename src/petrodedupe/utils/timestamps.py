"""Timestamp utilities for petrodedupe.

This module provides consistent timestamp functions across the codebase.
"""

from datetime import UTC, datetime

__all__ = ["get_iso_timestamp", "parse_timestamp"]


def get_iso_timestamp() -> str:
    """Get current UTC timestamp in ISO8601 format with microseconds.

    Returns
    -------
    str
        ISO8601 timestamp with microseconds (e.g., "2026-02-03T12:34:56.123456Z").
    """
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a store timestamp into a timezone-aware UTC datetime.

    Accepts date-only values ("2023-01-01"), 'Z' and offset suffixes.
    Naive values are taken as UTC.

    Parameters
    ----------
    value : str | None
        Raw timestamp as returned by the record store.

    Returns
    -------
    datetime | None
        Parsed datetime, or None if the value is missing or unparseable.
    """
    if not value or not value.strip():
        return None

    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
