"""Data models for duplicate grouping."""

from dataclasses import dataclass
from typing import Any

from petrodedupe.models import Record, RecordId


@dataclass(frozen=True)
class DuplicateGroup:
    """Records sharing one duplicate key, ordered best-first.

    Attributes
    ----------
    key : str
        Normalized duplicate key.
    records : tuple[Record, ...]
        Group members in rank order; ``records[0]`` is the survivor.
        Always at least two members.
    """

    key: str
    records: tuple[Record, ...]

    def __post_init__(self) -> None:
        """Validate group invariants."""
        if len(self.records) < 2:
            raise ValueError(
                f"Duplicate group {self.key!r} needs 2+ records, got {len(self.records)}"
            )

    @property
    def survivor(self) -> Record:
        """Top-ranked record, kept after the merge."""
        return self.records[0]

    @property
    def eliminated(self) -> tuple[Record, ...]:
        """Lower-ranked records, deleted after the merge."""
        return self.records[1:]

    @property
    def eliminated_ids(self) -> list[RecordId]:
        return [r.id for r in self.eliminated]

    @property
    def size(self) -> int:
        return len(self.records)

    @property
    def category(self) -> str:
        """Category of the survivor, used for report breakdowns."""
        category = self.survivor.category
        return category.strip() if category and category.strip() else "Unknown"

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "survivor_id": self.survivor.id,
            "member_ids": [r.id for r in self.records],
            "size": self.size,
        }
