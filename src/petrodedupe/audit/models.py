"""Data models for audit logging and run manifests."""

from dataclasses import dataclass, field
from typing import Any

__all__ = [
    "CommandInfo",
    "EnvironmentInfo",
    "StoreInfo",
    "ArtifactInfo",
    "StageInfo",
    "ErrorInfo",
    "ManifestData",
]


@dataclass
class CommandInfo:
    """Command-line information.

    Attributes
    ----------
    argv : list[str]
        Complete command-line arguments.
    cwd : str | None
        Working directory basename (for privacy).
    """

    argv: list[str]
    cwd: str | None = None


@dataclass
class EnvironmentInfo:
    """Execution environment information.

    Attributes
    ----------
    python_version : str
        Python version (e.g., "3.12.3").
    platform : str
        OS and architecture (e.g., "Linux-6.8.0-x86_64").
    package_version : str
        petrodedupe package version.
    dependencies : dict[str, str]
        Key dependency versions.
    """

    python_version: str
    platform: str
    package_version: str
    dependencies: dict[str, str] = field(default_factory=dict)


@dataclass
class StoreInfo:
    """Record store the run read from and wrote to.

    Attributes
    ----------
    kind : str
        Store kind ("postgrest", "snapshot", "memory").
    location : str
        Host name or snapshot file name; never credentials.
    entity : str
        Entity (table) deduplicated.
    records_loaded : int
        Rows returned by the loader.
    """

    kind: str
    location: str
    entity: str
    records_loaded: int = 0


@dataclass
class ArtifactInfo:
    """Output artifact metadata.

    Attributes
    ----------
    path : str
        Relative path from output directory.
    sha256 : str
        SHA256 digest with "sha256:" prefix.
    bytes : int | None
        File size in bytes.
    """

    path: str
    sha256: str
    bytes: int | None = None


@dataclass
class StageInfo:
    """Stage execution information."""

    name: str
    started_at: str
    counters: dict[str, int] = field(default_factory=dict)
    finished_at: str | None = None
    duration_seconds: float | None = None


@dataclass
class ErrorInfo:
    """Error record.

    Attributes
    ----------
    timestamp : str
        ISO8601 when error occurred.
    exception_class : str
        Exception class name.
    message : str
        Error message.
    stage : str | None
        Stage where error occurred.
    traceback : str | None
        Stack trace (if debug mode).
    rid : str | None
        Record identifier if error is record-specific.
    group_key : str | None
        Duplicate group key if error is group-specific.
    """

    timestamp: str
    exception_class: str
    message: str
    stage: str | None = None
    traceback: str | None = None
    rid: str | None = None
    group_key: str | None = None


@dataclass
class ManifestData:
    """Complete run manifest.

    Attributes
    ----------
    manifest_version : str
        Schema version (semver).
    run_id : str
        Unique run identifier.
    created_at : str
        ISO8601 UTC timestamp when run started.
    status : str
        "running" until the run finishes, then "success" or "failed".
    command : CommandInfo
        Command-line information.
    environment : EnvironmentInfo
        Execution environment.
    store : StoreInfo | None
        Record store used by the run.
    parameters : dict[str, Any]
        Configuration snapshot.
    stages : list[StageInfo]
        Stage execution records.
    artifacts : list[ArtifactInfo]
        Files written by the run, hashed.
    finished_at : str | None
        ISO8601 UTC timestamp when run finished.
    duration_seconds : float | None
        Total execution time.
    errors : list[ErrorInfo]
        Error records.
    """

    manifest_version: str
    run_id: str
    created_at: str
    command: CommandInfo
    environment: EnvironmentInfo
    parameters: dict[str, Any]
    status: str = "running"
    stages: list[StageInfo] = field(default_factory=list)
    artifacts: list[ArtifactInfo] = field(default_factory=list)
    store: StoreInfo | None = None
    finished_at: str | None = None
    duration_seconds: float | None = None
    errors: list[ErrorInfo] = field(default_factory=list)

