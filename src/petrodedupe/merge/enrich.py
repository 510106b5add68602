"""Fill derivable fields on the records left after deduplication.

Two rules, applied to every remaining record:

- An empty ``type`` is derived from the category and keywords in the name
  ("Granite" in Igneous -> "Plutonic"). Ore samples take their commodity
  type.
- Whitespace is stripped from the identifier code, on every row rather
  than only on merged survivors.
"""

from collections.abc import Iterable

from petrodedupe.audit.logger import AuditLogger
from petrodedupe.merge.field_merge import normalize_code_value
from petrodedupe.merge.models import Enrichment
from petrodedupe.models import Record, RecordId, is_absent
from petrodedupe.store import RecordStore, StoreError

__all__ = ["EnrichError", "derive_type", "enrich_records", "enrichment_patch"]

# First matching keyword wins; keys are lowercased categories.
TYPE_KEYWORDS: dict[str, tuple[tuple[str, str], ...]] = {
    "igneous": (
        ("granite", "Plutonic"),
        ("basalt", "Volcanic"),
        ("andesite", "Volcanic"),
        ("gabbro", "Plutonic"),
        ("rhyolite", "Volcanic"),
        ("obsidian", "Volcanic"),
        ("pumice", "Volcanic"),
        ("diorite", "Plutonic"),
    ),
    "sedimentary": (
        ("limestone", "Chemical"),
        ("sandstone", "Clastic"),
        ("shale", "Clastic"),
        ("conglomerate", "Clastic"),
        ("breccia", "Clastic"),
        ("chalk", "Biochemical"),
        ("coal", "Organic"),
    ),
    "metamorphic": (
        ("marble", "Non-foliated"),
        ("slate", "Foliated"),
        ("schist", "Foliated"),
        ("gneiss", "Foliated"),
        ("quartzite", "Non-foliated"),
        ("hornfels", "Non-foliated"),
    ),
}

DEFAULT_TYPES = {
    "igneous": "Igneous Rock",
    "sedimentary": "Sedimentary Rock",
    "metamorphic": "Metamorphic Rock",
}

ORE_CATEGORY = "ore samples"


class EnrichError(Exception):
    """A derived patch could not be written for one record."""

    def __init__(self, message: str, record_id: RecordId) -> None:
        super().__init__(message)
        self.record_id = record_id


def derive_type(record: Record, commodity_field: str = "commodity_type") -> str | None:
    """Derive a type from category and name, or None for unknown categories."""
    category = (record.category or "").strip().lower()
    if category == ORE_CATEGORY:
        commodity = record.get(commodity_field)
        return "Ore Sample" if is_absent(commodity) else str(commodity).strip()

    rules = TYPE_KEYWORDS.get(category)
    if rules is None:
        return None

    name = (record.name or "").lower()
    for keyword, rock_type in rules:
        if keyword in name:
            return rock_type
    return DEFAULT_TYPES[category]


def enrichment_patch(
    record: Record,
    *,
    code_field: str = "rock_code",
    type_field: str = "type",
) -> dict[str, object]:
    """Return the columns to set on ``record``; empty when nothing applies."""
    patch: dict[str, object] = {}

    if is_absent(record.get(type_field)):
        derived = derive_type(record)
        if derived is not None:
            patch[type_field] = derived

    code = record.get(code_field)
    if isinstance(code, str) and not is_absent(code):
        normalized = normalize_code_value(code)
        if normalized != code:
            patch[code_field] = normalized

    return patch


def enrich_records(
    store: RecordStore,
    entity: str,
    records: Iterable[Record],
    *,
    code_field: str = "rock_code",
    dry_run: bool = False,
    logger: AuditLogger | None = None,
) -> tuple[list[Enrichment], list[EnrichError]]:
    """Patch every record that has a derivable value.

    Parameters
    ----------
    store : RecordStore
        Target store.
    entity : str
        Entity (table) name.
    records : Iterable[Record]
        Records still live after the merge stage.
    code_field : str, optional
        Identifier column, by default "rock_code".
    dry_run : bool, optional
        Compute patches without writing them, by default False.
    logger : AuditLogger | None, optional
        Audit logger.

    Returns
    -------
    tuple[list[Enrichment], list[EnrichError]]
        One entry per record with a patch, and the patches that failed.
    """
    enrichments: list[Enrichment] = []
    errors: list[EnrichError] = []

    for record in records:
        patch = enrichment_patch(record, code_field=code_field)
        if not patch:
            continue

        enrichment = Enrichment(record_id=record.id, patch=patch)
        enrichments.append(enrichment)
        if dry_run:
            continue

        try:
            store.update(entity, record.id, patch)
        except StoreError as e:
            errors.append(EnrichError(str(e), record_id=record.id))
            continue

        enrichment.updated = True
        if logger:
            logger.event(
                "record_enriched",
                data={"fields": sorted(patch)},
                stage="enrich",
                rid=str(record.id),
            )

    return enrichments, errors
