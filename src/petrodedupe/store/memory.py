"""In-memory record store with optional JSONL snapshot persistence."""

import json
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from petrodedupe.models import RecordId
from petrodedupe.store.base import StoreError, check_bulk_ids

__all__ = ["InMemoryRecordStore"]


class InMemoryRecordStore:
    """Dict-backed record store.

    Rows are kept per entity in insertion order. Used for offline runs
    against a JSONL export of a table, and as a test double.

    Attributes
    ----------
    tables : dict[str, dict[RecordId, dict[str, Any]]]
        Rows per entity, keyed by id.
    calls : list[tuple[str, str, Any]]
        Write operations issued, as (operation, entity, argument).
    """

    def __init__(self, tables: dict[str, Iterable[dict[str, Any]]] | None = None) -> None:
        self.tables: dict[str, dict[RecordId, dict[str, Any]]] = {}
        self.calls: list[tuple[str, str, Any]] = []
        for entity, rows in (tables or {}).items():
            self.insert_many(entity, rows)

    @classmethod
    def from_jsonl(cls, path: Path, entity: str) -> "InMemoryRecordStore":
        """Load one entity from a JSONL snapshot (one row per line).

        Raises
        ------
        StoreError
            If the file cannot be read or a line is not valid JSON.
        """
        rows: list[dict[str, Any]] = []
        try:
            with path.open("r", encoding="utf-8") as f:
                for line_no, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        rows.append(json.loads(line))
                    except json.JSONDecodeError as e:
                        raise StoreError(
                            f"{path.name}:{line_no}: invalid JSON ({e.msg})",
                            operation="select",
                            entity=entity,
                        ) from e
        except OSError as e:
            raise StoreError(f"Cannot read snapshot {path}: {e}", "select", entity) from e

        return cls({entity: rows})

    def to_jsonl(self, path: Path, entity: str) -> int:
        """Write one entity back to a JSONL snapshot. Returns rows written."""
        rows = list(self.tables.get(entity, {}).values())
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            for row in rows:
                json.dump(row, f, ensure_ascii=False, sort_keys=True)
                f.write("\n")
        return len(rows)

    def insert_many(self, entity: str, rows: Iterable[dict[str, Any]]) -> None:
        table = self.tables.setdefault(entity, {})
        for row in rows:
            # Snapshot rows that are not objects are kept under a synthetic
            # key so select() still returns them for validation to reject.
            key = row.get("id") if isinstance(row, dict) else f"__invalid_{len(table)}"
            table[key] = row

    def select(
        self,
        entity: str,
        order_by: str | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        if entity not in self.tables:
            raise StoreError(f"Unknown entity: {entity}", operation="select", entity=entity)

        rows = [
            dict(row) if isinstance(row, dict) else row for row in self.tables[entity].values()
        ]
        if filters:
            rows = [r for r in rows if all(r.get(k) == v for k, v in filters.items())]
        if order_by:
            # Nulls last, like the hosted store's default ascending order.
            rows.sort(key=lambda r: (r.get(order_by) is None, str(r.get(order_by) or "")))
        return rows

    def update(self, entity: str, record_id: RecordId, patch: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("update", entity, record_id))
        row = self.tables.get(entity, {}).get(record_id)
        if row is None:
            raise StoreError(
                f"No {entity} row with id {record_id}",
                operation="update",
                entity=entity,
                record_id=record_id,
            )
        row.update(patch)
        return dict(row)

    def delete(self, entity: str, record_id: RecordId) -> None:
        self.calls.append(("delete", entity, record_id))
        table = self.tables.get(entity, {})
        if record_id not in table:
            raise StoreError(
                f"No {entity} row with id {record_id}",
                operation="delete",
                entity=entity,
                record_id=record_id,
            )
        del table[record_id]

    def bulk_delete(self, entity: str, ids: Sequence[RecordId]) -> None:
        id_list = check_bulk_ids(ids)
        self.calls.append(("bulk_delete", entity, tuple(id_list)))
        table = self.tables.get(entity, {})
        missing = [i for i in id_list if i not in table]
        if missing:
            raise StoreError(
                f"No {entity} rows with ids {missing}",
                operation="bulk_delete",
                entity=entity,
            )
        for record_id in id_list:
            del table[record_id]
