"""Catalog record data model for petrodedupe.

Rows read from the record store are validated against a bundled JSON Schema
and converted into ``Record`` instances. All downstream modules consume
records in this form.
"""

import json
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema

SCHEMA_PATH = Path(__file__).parent / "record.schema.json"

# Fields maintained by the store; never scored, never merged.
METADATA_FIELDS = frozenset({"id", "created_at", "updated_at"})

# Placeholder the catalog importers write for "no value".
ABSENT_SENTINEL = "-"

Scalar = str | int | float | bool | None
RecordId = str | int


class RecordValidationError(ValueError):
    """Raised when a store row does not match the record schema."""

    def __init__(self, message: str, record_id: RecordId | None = None) -> None:
        """Initialize validation error.

        Parameters
        ----------
        message : str
            Error message.
        record_id : RecordId | None, optional
            Identifier of the offending row, if it has one.
        """
        super().__init__(message)
        self.record_id = record_id


@lru_cache(maxsize=1)
def _record_validator() -> jsonschema.Draft202012Validator:
    with SCHEMA_PATH.open(encoding="utf-8") as f:
        schema = json.load(f)
    return jsonschema.Draft202012Validator(schema)


def is_absent(value: Any) -> bool:
    """Return True if a field value carries no data.

    None, empty or whitespace-only strings, and the ``"-"`` placeholder
    are absent. Numbers and booleans (including 0 and False) are present.
    """
    if value is None:
        return True
    if isinstance(value, str):
        stripped = value.strip()
        return stripped == "" or stripped == ABSENT_SENTINEL
    return False


@dataclass(frozen=True)
class Record:
    """A single catalog row.

    Attributes
    ----------
    id : RecordId
        Opaque identifier assigned by the store. Immutable.
    name : str | None
        Human-readable label.
    category : str | None
        Classification tag (e.g. "Igneous", "Ore Samples").
    created_at : str | None
        Creation timestamp as stored (ISO8601).
    updated_at : str | None
        Last update timestamp as stored (ISO8601).
    fields : dict[str, Scalar]
        Open set of optional descriptive attributes (color, locality,
        rock_code, chemical_formula, ...).
    """

    id: RecordId
    name: str | None
    category: str | None
    created_at: str | None = None
    updated_at: str | None = None
    fields: dict[str, Scalar] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Record":
        """Validate a store row and build a record from it.

        Parameters
        ----------
        data : dict[str, Any]
            Row as returned by the store.

        Returns
        -------
        Record
            Validated record.

        Raises
        ------
        RecordValidationError
            If the row does not match the record schema.
        """
        if not isinstance(data, dict):
            raise RecordValidationError(f"Record must be an object, got {type(data).__name__}")

        error = jsonschema.exceptions.best_match(_record_validator().iter_errors(data))
        if error is not None:
            location = "/".join(str(p) for p in error.absolute_path) or "<root>"
            raise RecordValidationError(
                f"Invalid record at {location}: {error.message}",
                record_id=data.get("id"),
            )

        extra = {
            k: v
            for k, v in data.items()
            if k not in METADATA_FIELDS and k not in ("name", "category")
        }
        return cls(
            id=data["id"],
            name=data["name"],
            category=data["category"],
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            fields=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        """Flatten into the store's row shape."""
        row: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "category": self.category,
        }
        if self.created_at is not None:
            row["created_at"] = self.created_at
        if self.updated_at is not None:
            row["updated_at"] = self.updated_at
        row.update(self.fields)
        return row

    def get(self, field_name: str) -> Any:
        """Look up any field by its store column name."""
        if field_name in ("id", "name", "category", "created_at", "updated_at"):
            return getattr(self, field_name)
        return self.fields.get(field_name)

    def with_fields(self, **updates: Scalar) -> "Record":
        """Return a copy with the given columns replaced.

        ``name`` and ``category`` go to the top-level attributes; every
        other column goes into ``fields``. Metadata columns cannot be set.
        """
        top: dict[str, Any] = {}
        extra = dict(self.fields)
        for key, value in updates.items():
            if key in METADATA_FIELDS:
                raise ValueError(f"Cannot overwrite store-managed field: {key}")
            if key in ("name", "category"):
                top[key] = value
            else:
                extra[key] = value
        return replace(self, fields=extra, **top)

    def data_items(self) -> list[tuple[str, Any]]:
        """Return (column, value) pairs excluding store-managed metadata."""
        items: list[tuple[str, Any]] = [("name", self.name), ("category", self.category)]
        items.extend(self.fields.items())
        return items
