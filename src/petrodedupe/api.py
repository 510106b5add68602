"""Public API for petrodedupe.

This module provides high-level convenience functions:
- Reading a JSONL table export into validated records
- Finding ranked duplicate groups without touching a store
- Deduplicating a JSONL table export in place
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from petrodedupe.grouping import DuplicateGroup, KeyMode, SurvivorPolicy, group_and_rank
from petrodedupe.models import Record
from petrodedupe.store import InMemoryRecordStore

if TYPE_CHECKING:
    from petrodedupe.audit import RunContext
    from petrodedupe.engine import DedupeResult

__all__ = [
    "load_snapshot",
    "find_duplicates",
    "dedupe_snapshot",
]


def load_snapshot(path: str | Path, entity: str = "rocks") -> list[Record]:
    """Read and validate a JSONL table export.

    Parameters
    ----------
    path : str | Path
        JSONL file, one row per line.
    entity : str, optional
        Entity name the rows belong to, by default "rocks".

    Returns
    -------
    list[Record]
        Validated records in file order.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    LoadError
        If the file cannot be parsed or a row fails validation.

    Examples
    --------
        >>> from petrodedupe import load_snapshot
        >>> records = load_snapshot("rocks.jsonl")
        >>> print(len(records))
    """
    from petrodedupe.engine.loader import LoadError, load_all_records
    from petrodedupe.store import StoreError

    snapshot_path = Path(path)
    if not snapshot_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    try:
        store = InMemoryRecordStore.from_jsonl(snapshot_path, entity)
    except StoreError as e:
        raise LoadError(f"Cannot load {entity}: {e}", entity=entity) from e

    # File order, not sorted: the caller decides how to order its input.
    return load_all_records(store, entity, order_by=None)


def find_duplicates(
    records: Iterable[Record],
    *,
    key_mode: KeyMode | str = KeyMode.NAME_CATEGORY,
    policy: SurvivorPolicy | str = SurvivorPolicy.COMPLETENESS,
    code_field: str = "rock_code",
) -> list[DuplicateGroup]:
    """Group records by duplicate key and rank each group.

    Read-only: nothing is merged or deleted.

    Examples
    --------
        >>> from petrodedupe import find_duplicates, load_snapshot
        >>> for group in find_duplicates(load_snapshot("rocks.jsonl")):
        ...     print(group.key, group.survivor.id, group.eliminated_ids)
    """
    return group_and_rank(
        records,
        mode=KeyMode(key_mode),
        policy=SurvivorPolicy(policy),
        code_field=code_field,
    )


def dedupe_snapshot(
    path: str | Path,
    *,
    output_path: str | Path | None = None,
    run: RunContext | None = None,
    **options: Any,
) -> DedupeResult:
    """Deduplicate a JSONL table export.

    Parameters
    ----------
    path : str | Path
        Input JSONL export.
    output_path : str | Path | None, optional
        Where to write the deduplicated rows. Defaults to ``path``
        (in place). Nothing is written on dry runs or load failures.
    run : RunContext | None, optional
        Audit context.
    **options : Any
        DedupeConfig fields (entity, key_mode, survivor_policy, dry_run, ...).

    Returns
    -------
    DedupeResult
        Run outcome.

    Raises
    ------
    FileNotFoundError
        If the input file does not exist.
    """
    from petrodedupe.engine import DedupeConfig, DedupeReport, DedupeResult, run_dedupe
    from petrodedupe.store import StoreError

    snapshot_path = Path(path)
    if not snapshot_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    config = DedupeConfig(**options)

    try:
        store = InMemoryRecordStore.from_jsonl(snapshot_path, config.entity)
    except StoreError as e:
        if run:
            run.record_error(e, stage="load")
        return DedupeResult(
            success=False,
            report=DedupeReport(dry_run=config.dry_run),
            error_message=f"Cannot load {config.entity}: {e}",
        )

    result = run_dedupe(store, config, run)

    if result.success and not config.dry_run:
        target = Path(output_path) if output_path is not None else snapshot_path
        store.to_jsonl(target, config.entity)
        result.output_files["snapshot"] = str(target)

    return result
