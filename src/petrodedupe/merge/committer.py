"""Persist merged survivors and delete eliminated duplicates."""

from collections.abc import Sequence

from petrodedupe.audit.logger import AuditLogger
from petrodedupe.merge.field_merge import update_patch
from petrodedupe.merge.models import ChildLink, MergedGroup
from petrodedupe.models import RecordId
from petrodedupe.store import RecordStore, StoreError, supports_bulk_delete

__all__ = [
    "ChildRowsError",
    "DeleteError",
    "MergeUpdateError",
    "commit_merged_group",
    "count_children",
    "move_children",
]


class MergeUpdateError(Exception):
    """Raised when the merged survivor cannot be persisted.

    The group is skipped: no duplicate is deleted without a merged
    replacement in place.
    """

    def __init__(self, message: str, group_key: str, record_id: RecordId) -> None:
        super().__init__(message)
        self.group_key = group_key
        self.record_id = record_id


class DeleteError(Exception):
    """A single eliminated record could not be deleted."""

    def __init__(self, message: str, group_key: str, record_id: RecordId) -> None:
        super().__init__(message)
        self.group_key = group_key
        self.record_id = record_id


class ChildRowsError(DeleteError):
    """Dependent rows of an eliminated record could not be read or moved.

    The record is kept so its child rows are neither orphaned nor
    cascade-deleted.
    """


def count_children(
    store: RecordStore, link: ChildLink, ids: Sequence[RecordId]
) -> dict[RecordId, int]:
    """Count the child rows referencing each of ``ids``."""
    return {
        record_id: len(store.select(link.entity, filters={link.key: record_id}))
        for record_id in ids
    }


def move_children(
    store: RecordStore, link: ChildLink, from_id: RecordId, to_id: RecordId
) -> int:
    """Repoint every child row of ``from_id`` at ``to_id``. Returns rows moved."""
    rows = store.select(link.entity, filters={link.key: from_id})
    for row in rows:
        store.update(link.entity, row["id"], {link.key: to_id})
    return len(rows)


def _delete_each(
    store: RecordStore,
    entity: str,
    merged: MergedGroup,
    ids: Sequence[RecordId],
    logger: AuditLogger | None,
) -> list[DeleteError]:
    errors: list[DeleteError] = []
    for record_id in ids:
        try:
            store.delete(entity, record_id)
        except StoreError as e:
            errors.append(DeleteError(str(e), group_key=merged.key, record_id=record_id))
            merged.failed_delete_ids.append(record_id)
            continue

        merged.deleted_ids.append(record_id)
        if logger:
            logger.record_deleted(rid=str(record_id), group_key=merged.key, stage="merge")
    return errors


def _move_all_children(
    store: RecordStore,
    link: ChildLink,
    merged: MergedGroup,
    ids: Sequence[RecordId],
    logger: AuditLogger | None,
) -> tuple[list[RecordId], list[DeleteError]]:
    movable: list[RecordId] = []
    errors: list[DeleteError] = []
    for record_id in ids:
        try:
            moved = move_children(store, link, record_id, merged.survivor.id)
        except StoreError as e:
            errors.append(
                ChildRowsError(
                    f"cannot move {link.entity} rows of {record_id}: {e}",
                    group_key=merged.key,
                    record_id=record_id,
                )
            )
            merged.failed_delete_ids.append(record_id)
            continue

        merged.child_counts[record_id] = moved
        movable.append(record_id)
        if moved and logger:
            logger.event(
                "children_moved",
                data={
                    "group_key": merged.key,
                    "entity": link.entity,
                    "count": moved,
                    "to_id": str(merged.survivor.id),
                },
                stage="merge",
                rid=str(record_id),
            )
    return movable, errors


def commit_merged_group(
    store: RecordStore,
    entity: str,
    merged: MergedGroup,
    *,
    bulk_delete: bool = False,
    children: ChildLink | None = None,
    logger: AuditLogger | None = None,
) -> list[DeleteError]:
    """Write one merged group back to the store.

    Issues exactly one survivor update, then one delete per eliminated
    record. Delete failures are collected, not raised, and never undo the
    update or stop sibling deletes.

    Parameters
    ----------
    store : RecordStore
        Target store.
    entity : str
        Entity (table) name.
    merged : MergedGroup
        Merge outcome; its ``updated``/``deleted_ids``/``failed_delete_ids``
        are filled in place.
    bulk_delete : bool, optional
        Try a single bulk delete first when the store supports it; on
        failure fall back to per-record deletes, by default False.
    children : ChildLink | None, optional
        Dependent table whose rows are moved to the survivor before each
        eliminated record is deleted. A record whose rows cannot be moved
        is kept.
    logger : AuditLogger | None, optional
        Audit logger.

    Returns
    -------
    list[DeleteError]
        One entry per eliminated record that could not be deleted (or
        whose child rows could not be moved).

    Raises
    ------
    MergeUpdateError
        If the survivor update fails. Nothing is deleted in that case.
    """
    survivor = merged.survivor
    try:
        store.update(entity, survivor.id, update_patch(survivor))
    except StoreError as e:
        raise MergeUpdateError(str(e), group_key=merged.key, record_id=survivor.id) from e
    merged.updated = True

    ids: Sequence[RecordId] = list(merged.eliminated_ids)
    errors: list[DeleteError] = []
    if children is not None:
        ids, errors = _move_all_children(store, children, merged, ids, logger)
    if not ids:
        return errors

    if bulk_delete and supports_bulk_delete(store):
        try:
            store.bulk_delete(entity, ids)  # type: ignore[attr-defined]
        except StoreError as e:
            if logger:
                logger.event(
                    "bulk_delete_fallback",
                    data={"group_key": merged.key, "ids": [str(i) for i in ids], "error": str(e)},
                    level="WARN",
                    stage="merge",
                )
        else:
            merged.deleted_ids.extend(ids)
            if logger:
                for record_id in ids:
                    logger.record_deleted(rid=str(record_id), group_key=merged.key, stage="merge")
            return errors

    return errors + _delete_each(store, entity, merged, ids, logger)
