"""Field merge, commit and post-merge enrichment for duplicate groups."""

from petrodedupe.merge.committer import (
    ChildRowsError,
    DeleteError,
    MergeUpdateError,
    commit_merged_group,
    count_children,
    move_children,
)
from petrodedupe.merge.enrich import EnrichError, derive_type, enrich_records, enrichment_patch
from petrodedupe.merge.field_merge import merge_group, normalize_code_value, update_patch
from petrodedupe.merge.models import (
    ChildLink,
    Enrichment,
    MergedGroup,
    MergePolicy,
    MergeProvenance,
    MergeProvenanceField,
)

__all__ = [
    "ChildLink",
    "ChildRowsError",
    "DeleteError",
    "EnrichError",
    "Enrichment",
    "MergeUpdateError",
    "MergedGroup",
    "MergePolicy",
    "MergeProvenance",
    "MergeProvenanceField",
    "commit_merged_group",
    "count_children",
    "derive_type",
    "enrich_records",
    "enrichment_patch",
    "merge_group",
    "move_children",
    "normalize_code_value",
    "update_patch",
]
