"""Audit logging and run manifest subsystem for petrodedupe.

Main Components
---------------
- RunContext: High-level context manager for a run
- AuditLogger: JSONL event logger
- ManifestWriter: Run manifest builder
"""

from petrodedupe.audit.context import RunContext
from petrodedupe.audit.helpers import generate_run_id, redact_url
from petrodedupe.audit.logger import AuditLogger
from petrodedupe.audit.manifest import ManifestWriter

__all__ = [
    "RunContext",
    "AuditLogger",
    "ManifestWriter",
    "generate_run_id",
    "redact_url",
]
