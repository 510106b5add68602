"""Duplicate grouping and survivor ranking.

Main Components
---------------
- duplicate_key: normalized (name, category) or identifier-code key
- completeness_score / rank_records: survivor ranking policies
- group_and_rank: partition a record set into ranked duplicate groups
"""

from petrodedupe.grouping.grouper import bucket_by_key, group_and_rank
from petrodedupe.grouping.keys import (
    KeyMode,
    code_key,
    duplicate_key,
    key_fields,
    name_category_key,
)
from petrodedupe.grouping.models import DuplicateGroup
from petrodedupe.grouping.ranking import SurvivorPolicy, completeness_score, rank_records

__all__ = [
    "DuplicateGroup",
    "KeyMode",
    "SurvivorPolicy",
    "bucket_by_key",
    "code_key",
    "completeness_score",
    "duplicate_key",
    "group_and_rank",
    "key_fields",
    "name_category_key",
    "rank_records",
]
