"""Pytest configuration and fixtures for test suite."""

import shutil
import sys
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pytest

# Add src directory to path for imports
SRC_PATH = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_PATH))

FIXTURES_DIR = Path(__file__).parent / "fixtures"

from petrodedupe.models import Record, RecordId  # noqa: E402
from petrodedupe.store import InMemoryRecordStore, StoreError  # noqa: E402


@pytest.fixture
def make_row() -> Callable[..., dict[str, Any]]:
    """Factory for raw store rows as the hosted API returns them."""

    def _factory(
        id: RecordId = 1,
        name: str | None = "Granite",
        category: str | None = "Igneous",
        created_at: str | None = "2023-01-01T00:00:00+00:00",
        **fields: Any,
    ) -> dict[str, Any]:
        row: dict[str, Any] = {"id": id, "name": name, "category": category}
        if created_at is not None:
            row["created_at"] = created_at
        row.update(fields)
        return row

    return _factory


@pytest.fixture
def make_record(make_row: Callable[..., dict[str, Any]]) -> Callable[..., Record]:
    """Factory for validated records with minimal boilerplate."""

    def _factory(id: RecordId = 1, **kwargs: Any) -> Record:
        return Record.from_dict(make_row(id=id, **kwargs))

    return _factory


class FlakyStore(InMemoryRecordStore):
    """In-memory store that fails selected operations."""

    def __init__(
        self,
        tables: dict[str, Iterable[dict[str, Any]]] | None = None,
        *,
        fail_select: bool = False,
        fail_update_ids: Iterable[RecordId] = (),
        fail_delete_ids: Iterable[RecordId] = (),
        fail_bulk_delete: bool = False,
    ) -> None:
        super().__init__(tables)
        self.fail_select = fail_select
        self.fail_update_ids = set(fail_update_ids)
        self.fail_delete_ids = set(fail_delete_ids)
        self.fail_bulk_delete = fail_bulk_delete

    def select(self, entity, order_by=None, filters=None):
        if self.fail_select:
            raise StoreError("connection refused", operation="select", entity=entity)
        return super().select(entity, order_by=order_by, filters=filters)

    def update(self, entity, record_id, patch):
        if record_id in self.fail_update_ids:
            self.calls.append(("update", entity, record_id))
            raise StoreError("update rejected", "update", entity, record_id)
        return super().update(entity, record_id, patch)

    def delete(self, entity, record_id):
        if record_id in self.fail_delete_ids:
            self.calls.append(("delete", entity, record_id))
            raise StoreError("delete rejected", "delete", entity, record_id)
        super().delete(entity, record_id)

    def bulk_delete(self, entity, ids):
        if self.fail_bulk_delete:
            self.calls.append(("bulk_delete", entity, tuple(ids)))
            raise StoreError("bulk delete rejected", "bulk_delete", entity)
        super().bulk_delete(entity, ids)


@pytest.fixture
def flaky_store() -> Callable[..., FlakyStore]:
    """Factory for stores that fail chosen operations."""
    return FlakyStore


@pytest.fixture
def snapshot(tmp_path: Path) -> Path:
    """Writable copy of the sample rocks table export.

    Seven rows: two duplicate groups ("granite-igneous" with ids 1, 2 and
    "chalcopyrite-ore samples" with ids 4, 5, 6) and two singletons.
    """
    target = tmp_path / "rocks.jsonl"
    shutil.copy(FIXTURES_DIR / "snapshots" / "rocks.jsonl", target)
    return target
