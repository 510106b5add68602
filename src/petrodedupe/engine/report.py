"""Run summary report."""

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from petrodedupe.models import Record
from petrodedupe.utils import get_iso_timestamp

if TYPE_CHECKING:
    from petrodedupe.merge import Enrichment, MergedGroup

__all__ = ["DedupeReport", "build_report", "count_by_category"]


@dataclass
class DedupeReport:
    """Summary statistics for a deduplication run.

    Attributes
    ----------
    records_scanned : int
        Records returned by the loader.
    duplicate_groups : int
        Groups of 2+ records sharing a duplicate key.
    survivors : int
        Groups whose merged survivor was persisted (planned, in dry runs).
    eliminated : int
        Duplicates deleted (planned, in dry runs).
    update_failures : int
        Groups skipped because the survivor update failed.
    delete_failures : int
        Individual deletes that failed.
    fields_filled : int
        Survivor fields filled from duplicates.
    records_enriched : int
        Remaining records given a derived type or normalized code
        (planned, in dry runs).
    enrich_failures : int
        Derived patches that could not be written.
    groups_by_category : dict[str, dict[str, int]]
        Per-category ``groups`` and ``eliminated`` counts.
    records_by_category : dict[str, int]
        Scanned records per category.
    dry_run : bool
        True when nothing was written to the store.
    timestamp : str
        ISO-8601 timestamp of report creation.
    """

    records_scanned: int = 0
    duplicate_groups: int = 0
    survivors: int = 0
    eliminated: int = 0
    update_failures: int = 0
    delete_failures: int = 0
    fields_filled: int = 0
    records_enriched: int = 0
    enrich_failures: int = 0
    groups_by_category: dict[str, dict[str, int]] = field(default_factory=dict)
    records_by_category: dict[str, int] = field(default_factory=dict)
    dry_run: bool = False
    timestamp: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def count_by_category(records: Iterable[Record]) -> dict[str, int]:
    """Count records per category; blank categories count as "Unknown"."""
    counts = Counter(
        (r.category.strip() if r.category and r.category.strip() else "Unknown") for r in records
    )
    return dict(sorted(counts.items()))


def build_report(
    records: Sequence[Record],
    duplicate_groups: int,
    merged_groups: Sequence["MergedGroup"],
    *,
    enrichments: Sequence["Enrichment"] = (),
    dry_run: bool = False,
) -> DedupeReport:
    """Summarize a run from its merge outcomes.

    Parameters
    ----------
    records : Sequence[Record]
        Loaded record set.
    duplicate_groups : int
        Number of duplicate groups found.
    merged_groups : Sequence[MergedGroup]
        Per-group outcomes.
    enrichments : Sequence[Enrichment], optional
        Post-merge derived patches.
    dry_run : bool, optional
        Count planned survivors/eliminations instead of persisted ones.

    Returns
    -------
    DedupeReport
        Run summary.
    """
    report = DedupeReport(
        records_scanned=len(records),
        duplicate_groups=duplicate_groups,
        records_by_category=count_by_category(records),
        dry_run=dry_run,
    )

    for merged in merged_groups:
        bucket = report.groups_by_category.setdefault(
            merged.category, {"groups": 0, "eliminated": 0}
        )
        bucket["groups"] += 1
        report.fields_filled += sum(
            1 for prov in merged.provenance.fields.values() if prov.rule == "fill_if_empty"
        )

        if dry_run:
            report.survivors += 1
            report.eliminated += len(merged.eliminated_ids)
            bucket["eliminated"] += len(merged.eliminated_ids)
            continue

        if not merged.updated:
            report.update_failures += 1
            continue

        report.survivors += 1
        report.eliminated += len(merged.deleted_ids)
        report.delete_failures += len(merged.failed_delete_ids)
        bucket["eliminated"] += len(merged.deleted_ids)

    for enrichment in enrichments:
        if dry_run or enrichment.updated:
            report.records_enriched += 1
        else:
            report.enrich_failures += 1

    report.groups_by_category = dict(sorted(report.groups_by_category.items()))
    report.timestamp = get_iso_timestamp()
    return report
