"""Duplicate detection and field-merge for catalog records.

Finds catalog rows (rocks, minerals, ...) entered more than once, keeps
the richest copy, fills its empty fields from the others and deletes the
rest.

This package provides:
- Data models (petrodedupe.models) — schema-validated records
- Store clients (petrodedupe.store) — hosted REST API and JSONL snapshots
- Grouping (petrodedupe.grouping) — duplicate keys and survivor ranking
- Merge (petrodedupe.merge) — fill-if-empty merge and commit
- Engine (petrodedupe.engine) — run orchestration and reporting
- Audit (petrodedupe.audit) — logging and traceability
- CLI (petrodedupe.cli) — command-line interface
- Public API (petrodedupe.api) — high-level convenience functions
"""

__version__ = "0.1.0"
__license__ = "MIT"

from petrodedupe.api import dedupe_snapshot, find_duplicates, load_snapshot
from petrodedupe.engine import DedupeConfig, DedupeResult, LoadError, run_dedupe
from petrodedupe.models import Record

__all__ = [
    "__version__",
    "__license__",
    "DedupeConfig",
    "DedupeResult",
    "LoadError",
    "Record",
    "dedupe_snapshot",
    "find_duplicates",
    "load_snapshot",
    "run_dedupe",
]
