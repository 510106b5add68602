"""Partition records into duplicate groups and rank each group."""

from collections.abc import Iterable

from petrodedupe.grouping.keys import KeyMode, duplicate_key
from petrodedupe.grouping.models import DuplicateGroup
from petrodedupe.grouping.ranking import SurvivorPolicy, rank_records
from petrodedupe.models import Record

__all__ = ["bucket_by_key", "group_and_rank"]


def bucket_by_key(
    records: Iterable[Record],
    mode: KeyMode = KeyMode.NAME_CATEGORY,
    code_field: str = "rock_code",
) -> dict[str, list[Record]]:
    """Bucket records by duplicate key.

    Buckets and their members keep input order. Records without a key
    (code mode, no code) are left out.
    """
    buckets: dict[str, list[Record]] = {}
    for record in records:
        key = duplicate_key(record, mode, code_field)
        if key is None:
            continue
        buckets.setdefault(key, []).append(record)
    return buckets


def group_and_rank(
    records: Iterable[Record],
    *,
    mode: KeyMode = KeyMode.NAME_CATEGORY,
    policy: SurvivorPolicy = SurvivorPolicy.COMPLETENESS,
    code_field: str = "rock_code",
) -> list[DuplicateGroup]:
    """Return ranked duplicate groups; singletons are dropped.

    Parameters
    ----------
    records : Iterable[Record]
        Complete record set, in loader order.
    mode : KeyMode, optional
        Key derivation mode, by default NAME_CATEGORY.
    policy : SurvivorPolicy, optional
        Survivor ranking policy, by default COMPLETENESS.
    code_field : str, optional
        Identifier column for CODE mode, by default "rock_code".

    Returns
    -------
    list[DuplicateGroup]
        Groups of 2+ records in first-seen key order, members ranked
        best-first.
    """
    buckets = bucket_by_key(records, KeyMode(mode), code_field)
    return [
        DuplicateGroup(key=key, records=tuple(rank_records(members, policy)))
        for key, members in buckets.items()
        if len(members) > 1
    ]
