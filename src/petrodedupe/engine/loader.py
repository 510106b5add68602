"""Load the complete candidate record set from the store."""

from petrodedupe.models import Record, RecordValidationError
from petrodedupe.store import RecordStore, StoreError

__all__ = ["LoadError", "load_all_records"]


class LoadError(Exception):
    """Raised when the record set cannot be loaded in full.

    Fatal: grouping a partial record set could merge or delete the wrong
    rows, so the run aborts before any write.
    """

    def __init__(self, message: str, entity: str) -> None:
        super().__init__(message)
        self.entity = entity


def load_all_records(
    store: RecordStore,
    entity: str,
    order_by: str | None = "name",
) -> list[Record]:
    """Fetch and validate every row of ``entity``.

    Parameters
    ----------
    store : RecordStore
        Source store.
    entity : str
        Entity (table) name.
    order_by : str | None, optional
        Column to order by ascending, by default "name". None keeps
        store order.

    Returns
    -------
    list[Record]
        Validated records in store order.

    Raises
    ------
    LoadError
        If the store is unreachable, returns a malformed payload, or any
        row fails schema validation.
    """
    try:
        rows = store.select(entity, order_by=order_by)
    except StoreError as e:
        raise LoadError(f"Cannot load {entity}: {e}", entity=entity) from e

    if not isinstance(rows, list):
        raise LoadError(
            f"Cannot load {entity}: store returned {type(rows).__name__}, expected a list",
            entity=entity,
        )

    records: list[Record] = []
    for index, row in enumerate(rows):
        try:
            records.append(Record.from_dict(row))
        except RecordValidationError as e:
            ref = f"id {e.record_id}" if e.record_id is not None else f"row {index}"
            raise LoadError(f"Cannot load {entity}: {ref}: {e}", entity=entity) from e
    return records
