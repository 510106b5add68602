"""Fill-if-empty field merge for duplicate groups."""

import re
from collections.abc import Iterable

from petrodedupe.grouping import DuplicateGroup
from petrodedupe.merge.models import MergeProvenance, MergeProvenanceField
from petrodedupe.models import METADATA_FIELDS, Record, RecordId, is_absent

__all__ = ["merge_group", "normalize_code_value", "update_patch"]

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_code_value(value: str) -> str:
    """Strip all whitespace from an identifier code ("O- 0012" -> "O-0012")."""
    return _WHITESPACE_RE.sub("", value)


def merge_group(
    group: DuplicateGroup,
    *,
    protected_fields: Iterable[str] = ("name", "category"),
    normalize_code: bool = True,
    code_field: str = "rock_code",
) -> tuple[Record, list[RecordId], MergeProvenance]:
    """Fold lower-ranked duplicates into the group's survivor.

    For each eliminated record in rank order, every field that is absent on
    the survivor and present on the duplicate is copied over. Once filled, a
    field is never overwritten by a later duplicate, and a field the
    survivor already has is never touched.

    Parameters
    ----------
    group : DuplicateGroup
        Ranked group; ``group.survivor`` is the base record.
    protected_fields : Iterable[str], optional
        Key columns that are equal across the group and never merged,
        by default ("name", "category").
    normalize_code : bool, optional
        Strip whitespace from the survivor's code field, by default True.
    code_field : str, optional
        Identifier column, by default "rock_code".

    Returns
    -------
    tuple[Record, list[RecordId], MergeProvenance]
        Merged survivor, eliminated ids, and field provenance.
    """
    skip = METADATA_FIELDS | frozenset(protected_fields)
    provenance = MergeProvenance()
    survivor = group.survivor

    filled: dict[str, object] = {}
    for duplicate in group.eliminated:
        for name, value in duplicate.data_items():
            if name in skip or name in filled:
                continue
            if is_absent(value) or not is_absent(survivor.get(name)):
                continue
            filled[name] = value
            provenance.fields[name] = MergeProvenanceField(
                from_id=duplicate.id, rule="fill_if_empty"
            )

    if filled:
        survivor = survivor.with_fields(**filled)

    if normalize_code:
        code = survivor.get(code_field)
        if isinstance(code, str) and _WHITESPACE_RE.search(code):
            survivor = survivor.with_fields(**{code_field: normalize_code_value(code)})
            origin = provenance.fields.get(code_field)
            if origin is not None:
                origin.normalized = True
            else:
                provenance.fields[code_field] = MergeProvenanceField(
                    from_id=survivor.id, rule="normalize_code", normalized=True
                )

    return survivor, group.eliminated_ids, provenance


def update_patch(record: Record) -> dict[str, object]:
    """Build the survivor update payload: every column but store metadata."""
    return {k: v for k, v in record.to_dict().items() if k not in METADATA_FIELDS}
