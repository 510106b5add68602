"""Record store client contract.

The engine's only boundary with the outside world. Anything that can list,
patch and delete rows of a named entity can back a deduplication run.
"""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from petrodedupe.models import RecordId

__all__ = ["RecordStore", "StoreError", "check_bulk_ids", "supports_bulk_delete"]


class StoreError(Exception):
    """Raised when a store operation fails.

    Attributes
    ----------
    operation : str
        Store operation that failed ("select", "update", "delete", ...).
    entity : str | None
        Target entity (table) name.
    record_id : RecordId | None
        Record identifier for single-row operations.
    """

    def __init__(
        self,
        message: str,
        operation: str,
        entity: str | None = None,
        record_id: RecordId | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.entity = entity
        self.record_id = record_id


@runtime_checkable
class RecordStore(Protocol):
    """CRUD + query operations the engine needs from a record store."""

    def select(
        self,
        entity: str,
        order_by: str | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Return every row of ``entity``, ascending by ``order_by``."""
        ...

    def update(self, entity: str, record_id: RecordId, patch: dict[str, Any]) -> dict[str, Any]:
        """Apply a partial update by primary key and return the updated row."""
        ...

    def delete(self, entity: str, record_id: RecordId) -> None:
        """Delete one row by primary key."""
        ...


def supports_bulk_delete(store: object) -> bool:
    """Return True if the store offers ``bulk_delete(entity, ids)``."""
    return callable(getattr(store, "bulk_delete", None))


def check_bulk_ids(ids: Sequence[RecordId]) -> list[RecordId]:
    """Return ids as a list, rejecting an empty batch."""
    id_list = list(ids)
    if not id_list:
        raise ValueError("bulk_delete requires at least one id")
    return id_list
