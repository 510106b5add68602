"""Structured audit logger for JSONL event logging.

Provides append-only structured event logging to JSONL files with
a persistent file handle for efficient I/O.
"""

import json
from pathlib import Path
from typing import Any

from petrodedupe.utils import get_iso_timestamp

__all__ = ["AuditLogger"]


class AuditLogger:
    """JSONL audit logger with persistent file handle.

    Writes structured log events to a JSONL file (one JSON object per line).
    Events are append-only and flushed after each write for durability.

    Attributes
    ----------
    run_id : str
        Unique run identifier.
    log_path : Path
        Path to JSONL log file.
    current_stage : str | None
        Current stage name for context.
    """

    def __init__(self, run_id: str, log_path: Path) -> None:
        self.run_id = run_id
        self.log_path = log_path
        self.current_stage: str | None = None

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.log_path.open("a", encoding="utf-8")

    def __enter__(self) -> "AuditLogger":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Flush and close the log file handle."""
        if not self._file.closed:
            self._file.flush()
            self._file.close()

    def set_stage(self, stage: str | None) -> None:
        self.current_stage = stage

    def event(
        self,
        event_type: str,
        data: dict[str, Any] | None = None,
        level: str = "INFO",
        stage: str | None = None,
        rid: str | None = None,
    ) -> None:
        """Write structured event to log.

        Parameters
        ----------
        event_type : str
            Event type identifier (e.g., "group_merged").
        data : dict[str, Any] | None, optional
            Event-specific data payload.
        level : str, optional
            Log level ("DEBUG", "INFO", "WARN", "ERROR").
        stage : str | None, optional
            Stage identifier, uses current_stage if not provided.
        rid : str | None, optional
            Record identifier if event is record-specific.
        """
        log_event = {
            "ts": get_iso_timestamp(),
            "run_id": self.run_id,
            "level": level,
            "event": event_type,
            "data": data or {},
            "stage": stage if stage is not None else self.current_stage,
            "rid": rid,
        }
        json.dump(log_event, self._file, ensure_ascii=False, separators=(",", ":"))
        self._file.write("\n")
        self._file.flush()

    def run_started(self, command: list[str], parameters: dict[str, Any]) -> None:
        self.event("run_started", data={"command": command, "parameters": parameters})

    def run_finished(
        self,
        status: str,
        duration_seconds: float,
        records_processed: int | None = None,
    ) -> None:
        """Log run_finished event.

        Parameters
        ----------
        status : str
            Run status ("success" or "failed").
        duration_seconds : float
            Total execution time in seconds.
        records_processed : int | None, optional
            Total records scanned.
        """
        data: dict[str, Any] = {
            "status": status,
            "duration_seconds": duration_seconds,
        }
        if records_processed is not None:
            data["records_processed"] = records_processed

        self.event("run_finished", data=data)

    def stage_started(self, stage: str, expected_records: int | None = None) -> None:
        self.set_stage(stage)

        data: dict[str, Any] = {}
        if expected_records is not None:
            data["expected_records"] = expected_records

        self.event("stage_started", data=data, stage=stage)

    def stage_finished(
        self,
        stage: str,
        duration_seconds: float,
        counters: dict[str, int] | None = None,
    ) -> None:
        data: dict[str, Any] = {"duration_seconds": duration_seconds}
        if counters:
            data["counters"] = counters

        self.event("stage_finished", data=data, stage=stage)

    def group_merged(
        self,
        group_key: str,
        survivor_id: str,
        eliminated_ids: list[str],
        fields_filled: list[str],
        dry_run: bool = False,
        stage: str | None = None,
    ) -> None:
        """Log group_merged event.

        Parameters
        ----------
        group_key : str
            Duplicate key of the group.
        survivor_id : str
            Record kept.
        eliminated_ids : list[str]
            Records folded into the survivor.
        fields_filled : list[str]
            Survivor columns filled from duplicates.
        dry_run : bool, optional
            True when nothing was written to the store.
        stage : str | None, optional
            Stage identifier.
        """
        self.event(
            "group_merged",
            data={
                "group_key": group_key,
                "eliminated_ids": eliminated_ids,
                "fields_filled": fields_filled,
                "dry_run": dry_run,
            },
            stage=stage,
            rid=survivor_id,
        )

    def record_deleted(self, rid: str, group_key: str, stage: str | None = None) -> None:
        self.event("record_deleted", data={"group_key": group_key}, stage=stage, rid=rid)

    def error(
        self,
        exception_class: str,
        message: str,
        stage: str | None = None,
        rid: str | None = None,
        traceback: str | None = None,
        group_key: str | None = None,
    ) -> None:
        """Log error event.

        Parameters
        ----------
        exception_class : str
            Exception class name.
        message : str
            Error message.
        stage : str | None, optional
            Stage where error occurred.
        rid : str | None, optional
            Record identifier if error is record-specific.
        traceback : str | None, optional
            Stack trace (only in debug mode).
        group_key : str | None, optional
            Duplicate group key if error is group-specific.
        """
        data: dict[str, Any] = {
            "exception_class": exception_class,
            "message": message,
        }
        if traceback is not None:
            data["traceback"] = traceback
        if group_key is not None:
            data["group_key"] = group_key

        self.event("error", data=data, stage=stage, rid=rid, level="ERROR")
