"""Completeness scoring and survivor ranking within a duplicate group."""

from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from enum import Enum

from petrodedupe.models import Record, is_absent
from petrodedupe.utils import parse_timestamp

__all__ = [
    "SurvivorPolicy",
    "completeness_score",
    "rank_records",
]

_NO_TIMESTAMP = datetime.min.replace(tzinfo=UTC)


class SurvivorPolicy(str, Enum):
    """Which duplicate is kept.

    COMPLETENESS keeps the record with the most populated fields, oldest
    first on ties. OLDEST keeps the earliest-created record regardless of
    how much data it carries.
    """

    COMPLETENESS = "completeness"
    OLDEST = "oldest"


def completeness_score(record: Record) -> int:
    """Count populated fields, excluding id, created_at and updated_at.

    Parameters
    ----------
    record : Record
        Record to score.

    Returns
    -------
    int
        Number of non-absent columns.
    """
    return sum(1 for _, value in record.data_items() if not is_absent(value))


def _age_key(record: Record) -> tuple[bool, datetime]:
    created = parse_timestamp(record.created_at)
    # Records without a usable timestamp sort after dated ones.
    if created is None:
        return (True, _NO_TIMESTAMP)
    return (False, created)


def _completeness_key(record: Record) -> tuple[int, bool, datetime]:
    return (-completeness_score(record), *_age_key(record))


_SORT_KEYS: dict[SurvivorPolicy, Callable[[Record], tuple]] = {
    SurvivorPolicy.COMPLETENESS: _completeness_key,
    SurvivorPolicy.OLDEST: _age_key,
}


def rank_records(
    records: Sequence[Record],
    policy: SurvivorPolicy = SurvivorPolicy.COMPLETENESS,
) -> list[Record]:
    """Order group members best-first; the first element is the survivor.

    The sort is stable: records that tie on every criterion keep their
    input order.

    Parameters
    ----------
    records : Sequence[Record]
        Members of one duplicate group.
    policy : SurvivorPolicy, optional
        Ranking policy, by default COMPLETENESS.

    Returns
    -------
    list[Record]
        Records in rank order.
    """
    return sorted(records, key=_SORT_KEYS[SurvivorPolicy(policy)])
