"""Run context manager for audit logging and manifest tracking."""

import sys
import traceback
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from petrodedupe.audit.helpers import (
    generate_run_id,
    get_dependency_versions,
    get_package_version,
    get_platform_info,
    get_python_version,
)
from petrodedupe.audit.logger import AuditLogger
from petrodedupe.audit.manifest import ManifestWriter
from petrodedupe.audit.models import (
    CommandInfo,
    EnvironmentInfo,
    ErrorInfo,
    StageInfo,
    StoreInfo,
)
from petrodedupe.utils import get_iso_timestamp

__all__ = ["RunContext"]


class RunContext:
    """Lifecycle of one deduplication run.

    Owns the audit logger and manifest writer for one run and tracks
    stage timing.

    Attributes
    ----------
    run_id : str
        Unique run identifier.
    output_dir : Path
        Output directory for all artifacts.
    audit_logger : AuditLogger
        Structured event logger.
    manifest_writer : ManifestWriter
        Manifest builder and writer.
    start_time : datetime
        Run start timestamp.
    """

    def __init__(
        self,
        run_id: str,
        output_dir: Path,
        audit_logger: AuditLogger,
        manifest_writer: ManifestWriter,
    ) -> None:
        self.run_id = run_id
        self.output_dir = output_dir
        self.audit_logger = audit_logger
        self.manifest_writer = manifest_writer
        self.start_time = datetime.now(UTC)
        self._stage_start_times: dict[str, datetime] = {}
        self._finished = False

    @classmethod
    def start(
        cls,
        output_dir: Path,
        parameters: dict[str, Any],
        command_argv: list[str] | None = None,
    ) -> "RunContext":
        """Start a new run context.

        Creates the output directory structure, initializes logger and
        manifest, and logs ``run_started``.

        Parameters
        ----------
        output_dir : Path
            Output directory for run artifacts.
        parameters : dict[str, Any]
            Configuration parameters for run.
        command_argv : list[str] | None, optional
            Command-line arguments, uses sys.argv if None.

        Returns
        -------
        RunContext
            Initialized run context.
        """
        run_id = generate_run_id()

        output_dir.mkdir(parents=True, exist_ok=True)
        (output_dir / "artifacts").mkdir(exist_ok=True)
        (output_dir / "reports").mkdir(exist_ok=True)

        command = CommandInfo(
            argv=command_argv or sys.argv,
            cwd=Path.cwd().name or None,
        )

        environment = EnvironmentInfo(
            python_version=get_python_version(),
            platform=get_platform_info(),
            package_version=get_package_version(),
            dependencies=get_dependency_versions(["click", "httpx", "jsonschema", "tenacity"]),
        )

        audit_logger = AuditLogger(run_id=run_id, log_path=output_dir / "events.jsonl")

        manifest_writer = ManifestWriter(
            run_id=run_id,
            output_dir=output_dir,
            command=command,
            environment=environment,
            parameters=parameters,
        )

        audit_logger.run_started(command=command.argv, parameters=parameters)

        return cls(
            run_id=run_id,
            output_dir=output_dir,
            audit_logger=audit_logger,
            manifest_writer=manifest_writer,
        )

    def set_store(self, kind: str, location: str, entity: str) -> None:
        self.manifest_writer.set_store(StoreInfo(kind=kind, location=location, entity=entity))

    def set_records_loaded(self, count: int) -> None:
        if self.manifest_writer.manifest.store is not None:
            self.manifest_writer.manifest.store.records_loaded = count

    def register_outputs(self, paths: Iterable[str | Path]) -> None:
        self.manifest_writer.register_outputs(paths)

    def start_stage(self, stage_name: str, expected_records: int | None = None) -> None:
        self._stage_start_times[stage_name] = datetime.now(UTC)
        self.manifest_writer.add_stage(StageInfo(name=stage_name, started_at=get_iso_timestamp()))
        self.audit_logger.stage_started(stage=stage_name, expected_records=expected_records)

    def finish_stage(
        self,
        stage_name: str,
        counters: dict[str, int] | None = None,
    ) -> None:
        """Finish a run stage.

        Parameters
        ----------
        stage_name : str
            Stage identifier.
        counters : dict[str, int] | None, optional
            Final counters for stage.

        Raises
        ------
        ValueError
            If stage was not started.
        """
        start_time = self._stage_start_times.pop(stage_name, None)
        if start_time is None:
            raise ValueError(f"Stage not started: {stage_name}")

        duration = (datetime.now(UTC) - start_time).total_seconds()

        self.manifest_writer.finish_stage(
            stage_name=stage_name,
            finished_at=get_iso_timestamp(),
            duration_seconds=duration,
        )
        if counters:
            self.manifest_writer.update_stage_counters(stage_name=stage_name, counters=counters)

        self.audit_logger.stage_finished(
            stage=stage_name,
            duration_seconds=duration,
            counters=counters,
        )

    def record_error(
        self,
        exception: BaseException,
        stage: str | None = None,
        rid: str | None = None,
        group_key: str | None = None,
        include_traceback: bool = False,
    ) -> None:
        """Record an error in logs and manifest.

        Parameters
        ----------
        exception : BaseException
            Exception that occurred.
        stage : str | None, optional
            Stage where error occurred.
        rid : str | None, optional
            Record identifier if error is record-specific.
        group_key : str | None, optional
            Duplicate group key if error is group-specific.
        include_traceback : bool, optional
            Whether to include stack trace, by default False.
        """
        exception_class = type(exception).__name__
        message = str(exception)

        tb = None
        if include_traceback:
            tb = "".join(
                traceback.format_exception(type(exception), exception, exception.__traceback__)
            )

        self.manifest_writer.add_error(
            ErrorInfo(
                timestamp=get_iso_timestamp(),
                exception_class=exception_class,
                message=message,
                stage=stage,
                traceback=tb,
                rid=rid,
                group_key=group_key,
            )
        )

        self.audit_logger.error(
            exception_class=exception_class,
            message=message,
            stage=stage,
            rid=rid,
            traceback=tb,
            group_key=group_key,
        )

    def finish(
        self,
        status: str = "success",
        records_processed: int | None = None,
    ) -> None:
        """Finish the run and write final manifest.

        Closes the audit logger before computing artifact hashes so that
        events.jsonl is complete on disk. Calling it twice is a no-op.

        Parameters
        ----------
        status : str, optional
            Final run status, by default "success".
        records_processed : int | None, optional
            Total records scanned.
        """
        if self._finished:
            return
        self._finished = True

        duration = (datetime.now(UTC) - self.start_time).total_seconds()

        self.audit_logger.run_finished(
            status=status,
            duration_seconds=duration,
            records_processed=records_processed,
        )
        self.audit_logger.close()

        self.manifest_writer.compute_output_artifacts()
        self.manifest_writer.finish(
            status=status,
            finished_at=get_iso_timestamp(),
            duration_seconds=duration,
        )
