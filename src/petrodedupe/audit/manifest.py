"""Manifest writer for run execution metadata.

Provides atomic manifest writing with O(1) stage lookup.
"""

import json
import os
from collections.abc import Iterable
from dataclasses import asdict
from pathlib import Path
from typing import Any

from petrodedupe.audit.models import (
    ArtifactInfo,
    CommandInfo,
    EnvironmentInfo,
    ErrorInfo,
    ManifestData,
    StageInfo,
    StoreInfo,
)
from petrodedupe.utils import calculate_file_sha256, get_iso_timestamp

__all__ = ["ManifestWriter", "MANIFEST_VERSION"]

MANIFEST_VERSION = "1.1.0"


class ManifestWriter:
    """Atomic manifest writer with indexed stage lookup.

    Only files registered through ``register_outputs`` (plus the event log)
    are hashed, so leftovers from an earlier run in the same output
    directory never appear in this run's manifest.

    Attributes
    ----------
    manifest : ManifestData
        Current manifest data being built.
    output_dir : Path
        Output directory for manifest files.
    """

    def __init__(
        self,
        run_id: str,
        output_dir: Path,
        command: CommandInfo,
        environment: EnvironmentInfo,
        parameters: dict[str, Any],
    ) -> None:
        self.output_dir = output_dir
        self.manifest_path = output_dir / "run.json"

        self.manifest = ManifestData(
            manifest_version=MANIFEST_VERSION,
            run_id=run_id,
            created_at=get_iso_timestamp(),
            command=command,
            environment=environment,
            parameters=parameters,
        )

        self._stage_index: dict[str, StageInfo] = {}
        self._outputs: list[Path] = [output_dir / "events.jsonl"]

    def _get_stage(self, stage_name: str) -> StageInfo:
        stage = self._stage_index.get(stage_name)
        if stage is None:
            raise ValueError(f"Stage not found: {stage_name}")
        return stage

    def set_store(self, store: StoreInfo) -> None:
        self.manifest.store = store

    def add_stage(self, stage: StageInfo) -> None:
        self.manifest.stages.append(stage)
        self._stage_index[stage.name] = stage

    def update_stage_counters(self, stage_name: str, counters: dict[str, int]) -> None:
        """Merge counters into an existing stage.

        Raises
        ------
        ValueError
            If stage not found.
        """
        self._get_stage(stage_name).counters.update(counters)

    def finish_stage(
        self,
        stage_name: str,
        finished_at: str | None = None,
        duration_seconds: float | None = None,
    ) -> None:
        """Mark stage as finished.

        Raises
        ------
        ValueError
            If stage not found.
        """
        stage = self._get_stage(stage_name)
        stage.finished_at = finished_at or get_iso_timestamp()
        stage.duration_seconds = duration_seconds

    def add_error(self, error: ErrorInfo) -> None:
        self.manifest.errors.append(error)

    def register_outputs(self, paths: Iterable[str | Path]) -> None:
        """Register files written by this run for hashing at finish."""
        for path in paths:
            resolved = Path(path)
            if resolved not in self._outputs:
                self._outputs.append(resolved)

    def compute_output_artifacts(self) -> None:
        """Hash the registered output files that exist on disk."""
        for path in self._outputs:
            if not path.exists():
                continue
            try:
                relative = path.relative_to(self.output_dir).as_posix()
            except ValueError:
                relative = str(path)
            self.manifest.artifacts.append(
                ArtifactInfo(
                    path=relative,
                    sha256=calculate_file_sha256(path),
                    bytes=path.stat().st_size,
                )
            )

    def finish(
        self,
        status: str,
        finished_at: str | None = None,
        duration_seconds: float | None = None,
    ) -> None:
        """Finalize manifest and write atomically.

        Parameters
        ----------
        status : str
            Final run status ("success" or "failed").
        finished_at : str | None, optional
            ISO8601 timestamp, uses current time if None.
        duration_seconds : float | None, optional
            Total run duration in seconds.
        """
        self.manifest.status = status
        self.manifest.finished_at = finished_at or get_iso_timestamp()
        self.manifest.duration_seconds = duration_seconds

        self._write_manifest_atomic(self.manifest_path)

    def _write_manifest_atomic(self, path: Path) -> None:
        """Write manifest atomically: write to temp, fsync, rename."""
        temp_path = path.with_suffix(".tmp")

        with temp_path.open("w", encoding="utf-8") as f:
            json.dump(asdict(self.manifest), f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())

        temp_path.replace(path)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self.manifest)
