"""Shared data types for petrodedupe.

Domain-specific types live closer to their consumers:
- Grouping types → petrodedupe.grouping.models
- Merge types → petrodedupe.merge.models
- Audit types → petrodedupe.audit.models
"""

from petrodedupe.models.records import (
    ABSENT_SENTINEL,
    METADATA_FIELDS,
    Record,
    RecordId,
    RecordValidationError,
    Scalar,
    is_absent,
)

__all__ = [
    "ABSENT_SENTINEL",
    "METADATA_FIELDS",
    "Record",
    "RecordId",
    "RecordValidationError",
    "Scalar",
    "is_absent",
]
