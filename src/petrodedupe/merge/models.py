"""Data models for field merge and commit."""

from dataclasses import dataclass, field
from typing import Any

from petrodedupe.models import Record, RecordId


@dataclass
class MergePolicy:
    """Merge policy version information."""

    name: str
    version: str


@dataclass
class MergeProvenanceField:
    """Provenance for a single merged field.

    Attributes
    ----------
    from_id : RecordId
        Record that supplied the value (the survivor itself for
        "normalize_code").
    rule : str
        "fill_if_empty" when the value came from a duplicate,
        "normalize_code" when only the survivor's own code was rewritten.
    normalized : bool
        Whether whitespace was stripped from the value.
    """

    from_id: RecordId
    rule: str
    normalized: bool = False


@dataclass
class MergeProvenance:
    """Field-level provenance for one merged survivor."""

    fields: dict[str, MergeProvenanceField] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            name: {"from_id": prov.from_id, "rule": prov.rule, "normalized": prov.normalized}
            for name, prov in self.fields.items()
        }


@dataclass
class MergedGroup:
    """Outcome of merging and committing one duplicate group.

    Attributes
    ----------
    key : str
        Duplicate key of the group.
    category : str
        Survivor category, for report breakdowns.
    survivor : Record
        Survivor after fill-if-empty merge.
    eliminated_ids : list[RecordId]
        Records folded into the survivor, in rank order.
    provenance : MergeProvenance
        Which eliminated record filled which field.
    updated : bool
        Whether the survivor update was persisted.
    deleted_ids : list[RecordId]
        Eliminated records actually deleted.
    failed_delete_ids : list[RecordId]
        Eliminated records whose delete failed.
    child_counts : dict[RecordId, int]
        Dependent rows per member: counted on dry runs, moved to the
        survivor otherwise.
    """

    key: str
    category: str
    survivor: Record
    eliminated_ids: list[RecordId]
    provenance: MergeProvenance
    updated: bool = False
    deleted_ids: list[RecordId] = field(default_factory=list)
    failed_delete_ids: list[RecordId] = field(default_factory=list)
    child_counts: dict[RecordId, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "category": self.category,
            "survivor_id": self.survivor.id,
            "eliminated_ids": list(self.eliminated_ids),
            "merged_record": self.survivor.to_dict(),
            "merge_provenance": self.provenance.to_dict(),
            "updated": self.updated,
            "deleted_ids": list(self.deleted_ids),
            "failed_delete_ids": list(self.failed_delete_ids),
            "child_counts": {str(k): v for k, v in self.child_counts.items()},
        }


@dataclass(frozen=True)
class ChildLink:
    """Dependent table whose rows reference records by foreign key.

    Attributes
    ----------
    entity : str
        Child table, e.g. "rock_images".
    key : str
        Foreign key column holding the parent record id.
    """

    entity: str
    key: str = "rock_id"


@dataclass
class Enrichment:
    """Derived values for one remaining record.

    Attributes
    ----------
    record_id : RecordId
        Record patched.
    patch : dict[str, Any]
        Columns set (derived ``type``, normalized code).
    updated : bool
        Whether the patch was persisted.
    """

    record_id: RecordId
    patch: dict[str, Any]
    updated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"record_id": self.record_id, "patch": dict(self.patch), "updated": self.updated}
