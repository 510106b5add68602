"""Common utility functions for petrodedupe."""

from petrodedupe.utils.hashing import calculate_file_sha256, format_sha256
from petrodedupe.utils.timestamps import get_iso_timestamp, parse_timestamp

__all__ = [
    "get_iso_timestamp",
    "parse_timestamp",
    "calculate_file_sha256",
    "format_sha256",
]
