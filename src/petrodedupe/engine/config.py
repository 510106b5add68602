"""Run configuration and result dataclasses."""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from petrodedupe.engine.report import DedupeReport
from petrodedupe.grouping import KeyMode, SurvivorPolicy
from petrodedupe.merge import ChildLink, Enrichment, MergedGroup

_ORDER_BY_CHOICES = ("name", "created_at")


@dataclass
class DedupeConfig:
    """Configuration for a deduplication run.

    Attributes
    ----------
    entity : str
        Entity (table) to deduplicate (default: "rocks").
    key_mode : KeyMode
        Duplicate key: normalized name+category, or identifier code.
    survivor_policy : SurvivorPolicy
        Keep the most complete record, or the oldest one.
    order_by : str
        Loader ordering, "name" or "created_at".
    code_field : str
        Identifier column used by code keys and code normalization.
    normalize_code : bool
        Strip whitespace from the survivor's identifier code.
    bulk_delete : bool
        Delete each group's duplicates with one bulk call when possible.
    fill_missing : bool
        After merging, derive empty types and normalize codes on every
        remaining record.
    child_entity : str | None
        Dependent table (e.g. "rock_images") whose rows are moved to the
        survivor before a duplicate is deleted, and counted on dry runs.
    child_key : str
        Foreign key column of ``child_entity``.
    dry_run : bool
        Rank and merge in memory only; write nothing to the store.
    output_dir : Path
        Base directory for reports and artifacts.
    """

    entity: str = "rocks"
    key_mode: KeyMode = KeyMode.NAME_CATEGORY
    survivor_policy: SurvivorPolicy = SurvivorPolicy.COMPLETENESS
    order_by: str = "name"
    code_field: str = "rock_code"
    normalize_code: bool = True
    bulk_delete: bool = False
    fill_missing: bool = False
    child_entity: str | None = None
    child_key: str = "rock_id"
    dry_run: bool = False
    output_dir: Path = Path("out")

    def __post_init__(self) -> None:
        """Coerce enum values and validate."""
        if not self.entity or not self.entity.strip():
            raise ValueError("entity must be a non-empty table name")

        try:
            self.key_mode = KeyMode(self.key_mode)
        except ValueError:
            choices = ", ".join(m.value for m in KeyMode)
            raise ValueError(f"key_mode must be one of {choices}, got {self.key_mode!r}") from None

        try:
            self.survivor_policy = SurvivorPolicy(self.survivor_policy)
        except ValueError:
            choices = ", ".join(p.value for p in SurvivorPolicy)
            raise ValueError(
                f"survivor_policy must be one of {choices}, got {self.survivor_policy!r}"
            ) from None

        if self.order_by not in _ORDER_BY_CHOICES:
            raise ValueError(
                f"order_by must be one of {', '.join(_ORDER_BY_CHOICES)}, got {self.order_by!r}"
            )

        if not self.code_field:
            raise ValueError("code_field must be a non-empty column name")

        if self.child_entity is not None:
            if not self.child_entity.strip():
                raise ValueError("child_entity must be a table name or None")
            if self.child_entity == self.entity:
                raise ValueError("child_entity must differ from entity")
        if not self.child_key:
            raise ValueError("child_key must be a non-empty column name")

        self.output_dir = Path(self.output_dir)

    @property
    def child_link(self) -> ChildLink | None:
        if self.child_entity is None:
            return None
        return ChildLink(entity=self.child_entity, key=self.child_key)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        data = asdict(self)
        data["key_mode"] = self.key_mode.value
        data["survivor_policy"] = self.survivor_policy.value
        data["output_dir"] = str(self.output_dir)
        return data


@dataclass
class DedupeResult:
    """Results from a deduplication run.

    Attributes
    ----------
    success : bool
        False only when the run aborted on a fatal load failure.
    report : DedupeReport
        Counts and per-category breakdown.
    merged_groups : list[MergedGroup]
        Per-group merge outcomes, in processing order.
    enrichments : list[Enrichment]
        Derived patches, when ``fill_missing`` is set.
    failures : list[Exception]
        Recoverable errors (MergeUpdateError, DeleteError, EnrichError).
    output_files : dict[str, str]
        Map of artifact type to file path.
    error_message : str | None
        Fatal error message if failed.
    """

    success: bool
    report: DedupeReport
    merged_groups: list[MergedGroup] = field(default_factory=list)
    enrichments: list[Enrichment] = field(default_factory=list)
    failures: list[Exception] = field(default_factory=list)
    output_files: dict[str, str] = field(default_factory=dict)
    error_message: str | None = None
