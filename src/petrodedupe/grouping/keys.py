"""Duplicate key derivation.

Keys are derived, never stored. Two records with equal keys are treated as
the same real-world specimen entered more than once.
"""

import re
from enum import Enum

from petrodedupe.models import Record, is_absent

__all__ = ["KeyMode", "name_category_key", "code_key", "duplicate_key", "key_fields"]

_WHITESPACE_RE = re.compile(r"\s+")


class KeyMode(str, Enum):
    """How duplicate keys are computed."""

    NAME_CATEGORY = "name_category"
    CODE = "code"


def _norm(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def name_category_key(record: Record) -> str:
    """Return ``lower(trim(name)) + "-" + lower(trim(category))``.

    Missing name or category yields a degenerate but valid key.
    """
    return f"{_norm(record.name)}-{_norm(record.category)}"


def code_key(record: Record, code_field: str = "rock_code") -> str | None:
    """Return the identifier code with all whitespace removed, lowercased.

    Returns None when the record has no code; such records never group.
    """
    value = record.get(code_field)
    if is_absent(value):
        return None
    return _WHITESPACE_RE.sub("", str(value)).lower()


def duplicate_key(
    record: Record,
    mode: KeyMode = KeyMode.NAME_CATEGORY,
    code_field: str = "rock_code",
) -> str | None:
    """Compute the duplicate key for ``record`` under ``mode``."""
    if mode is KeyMode.CODE:
        return code_key(record, code_field)
    return name_category_key(record)


def key_fields(mode: KeyMode, code_field: str = "rock_code") -> frozenset[str]:
    """Columns that define the key, and so are equal across a group."""
    if mode is KeyMode.CODE:
        return frozenset({code_field})
    return frozenset({"name", "category"})
