"""Run orchestration engine.

This package provides the main entry point for a deduplication run,
including configuration, loader, and result types.
"""

from petrodedupe.engine.config import DedupeConfig, DedupeResult
from petrodedupe.engine.loader import LoadError, load_all_records
from petrodedupe.engine.report import DedupeReport, build_report, count_by_category
from petrodedupe.engine.runner import run_dedupe

__all__ = [
    "DedupeConfig",
    "DedupeReport",
    "DedupeResult",
    "LoadError",
    "build_report",
    "count_by_category",
    "load_all_records",
    "run_dedupe",
]
