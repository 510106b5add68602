"""Tests for manifest writer module."""

import json
from pathlib import Path

import pytest

from petrodedupe.audit.manifest import ManifestWriter
from petrodedupe.audit.models import (
    CommandInfo,
    EnvironmentInfo,
    ErrorInfo,
    StageInfo,
    StoreInfo,
)

_COMMAND = CommandInfo(argv=["petrodedupe", "dedupe"], cwd="workdir")
_ENVIRONMENT = EnvironmentInfo(
    python_version="3.12.3",
    platform="Linux-6.8.0-x86_64",
    package_version="0.1.0",
    dependencies={"httpx": "0.27.2"},
)


@pytest.fixture
def writer(tmp_path: Path) -> ManifestWriter:
    """Create a ManifestWriter with minimal config."""
    return ManifestWriter(
        run_id="test_run_123",
        output_dir=tmp_path,
        command=_COMMAND,
        environment=_ENVIRONMENT,
        parameters={"entity": "rocks", "dry_run": False},
    )


@pytest.mark.unit
def test_manifest_init_state(writer: ManifestWriter, tmp_path: Path) -> None:
    """Test manifest starts running, with no store, stages or errors."""
    assert writer.manifest.run_id == "test_run_123"
    assert writer.manifest.status == "running"
    assert writer.manifest_path == tmp_path / "run.json"
    assert writer.manifest.store is None
    assert writer.manifest.stages == []
    assert writer.manifest.errors == []


@pytest.mark.unit
def test_manifest_stage_lifecycle(writer: ManifestWriter) -> None:
    """Test add → update counters → finish for a stage."""
    writer.add_stage(
        StageInfo(name="merge", started_at="2026-02-03T12:00:00Z", counters={"groups": 4})
    )

    writer.update_stage_counters("merge", {"records_deleted": 5, "failures": 1})
    writer.finish_stage("merge", finished_at="2026-02-03T12:05:00Z", duration_seconds=300.0)

    result = writer.manifest.stages[0]
    assert result.counters == {"groups": 4, "records_deleted": 5, "failures": 1}
    assert result.finished_at == "2026-02-03T12:05:00Z"
    assert result.duration_seconds == 300.0


@pytest.mark.unit
def test_manifest_stage_not_found_raises(writer: ManifestWriter) -> None:
    """Test operations on nonexistent stage raise ValueError."""
    with pytest.raises(ValueError, match="Stage not found"):
        writer.update_stage_counters("ghost", {"n": 1})

    with pytest.raises(ValueError, match="Stage not found"):
        writer.finish_stage("ghost")


@pytest.mark.unit
def test_manifest_hashes_registered_outputs(writer: ManifestWriter, tmp_path: Path) -> None:
    """Test the event log and registered outputs are hashed, in registration order."""
    (tmp_path / "reports").mkdir()
    (tmp_path / "events.jsonl").write_text('{"event":"test"}\n')
    summary = tmp_path / "reports" / "dedupe_summary.json"
    summary.write_text("{}\n")

    writer.register_outputs([str(summary)])
    writer.compute_output_artifacts()

    artifacts = writer.manifest.artifacts
    assert [a.path for a in artifacts] == ["events.jsonl", "reports/dedupe_summary.json"]
    assert all(a.sha256.startswith("sha256:") for a in artifacts)
    assert artifacts[0].bytes == (tmp_path / "events.jsonl").stat().st_size


@pytest.mark.unit
def test_manifest_ignores_unregistered_leftovers(writer: ManifestWriter, tmp_path: Path) -> None:
    """Test files from an earlier run in the same directory are not listed."""
    (tmp_path / "artifacts").mkdir()
    (tmp_path / "reports").mkdir()
    (tmp_path / "artifacts" / "merged_groups.jsonl").write_text("{}\n")
    (tmp_path / "reports" / "dedupe_summary.json").write_text("{}\n")

    writer.compute_output_artifacts()

    assert writer.manifest.artifacts == []


@pytest.mark.unit
def test_manifest_register_outputs_is_idempotent(writer: ManifestWriter, tmp_path: Path) -> None:
    (tmp_path / "events.jsonl").write_text("\n")

    writer.register_outputs([tmp_path / "events.jsonl", str(tmp_path / "events.jsonl")])
    writer.compute_output_artifacts()

    assert [a.path for a in writer.manifest.artifacts] == ["events.jsonl"]


@pytest.mark.unit
def test_manifest_atomic_write(writer: ManifestWriter, tmp_path: Path) -> None:
    """Test finish writes run.json atomically (no temp file left)."""
    writer.finish(status="success", finished_at="2026-02-03T12:10:00Z", duration_seconds=600.0)

    assert writer.manifest_path.exists()
    assert not (tmp_path / "run.tmp").exists()

    with writer.manifest_path.open() as f:
        data = json.load(f)

    assert data["status"] == "success"
    assert data["run_id"] == "test_run_123"
    assert data["duration_seconds"] == 600.0


@pytest.mark.unit
def test_manifest_complete_workflow(writer: ManifestWriter) -> None:
    """Test full workflow: store → stage → group error → finish → valid JSON."""
    writer.set_store(
        StoreInfo(kind="postgrest", location="example.supabase.co", entity="rocks")
    )
    writer.manifest.store.records_loaded = 120

    writer.add_stage(StageInfo(name="merge", started_at="2026-02-03T12:00:00Z"))
    writer.update_stage_counters("merge", {"groups_merged": 3})
    writer.finish_stage("merge", finished_at="2026-02-03T12:05:00Z", duration_seconds=300.0)

    writer.add_error(
        ErrorInfo(
            timestamp="2026-02-03T12:04:00Z",
            exception_class="DeleteError",
            message="delete rocks failed: HTTP 409",
            stage="merge",
            rid="17",
            group_key="granite-igneous",
        )
    )

    writer.finish(status="success", finished_at="2026-02-03T12:10:00Z", duration_seconds=600.0)

    with writer.manifest_path.open() as f:
        data = json.load(f)

    assert data["store"] == {
        "kind": "postgrest",
        "location": "example.supabase.co",
        "entity": "rocks",
        "records_loaded": 120,
    }
    assert data["stages"][0]["counters"]["groups_merged"] == 3
    assert data["errors"][0]["group_key"] == "granite-igneous"
    assert data["errors"][0]["rid"] == "17"


@pytest.mark.unit
def test_manifest_to_dict(writer: ManifestWriter) -> None:
    """Test to_dict returns a serializable dictionary."""
    d = writer.to_dict()

    assert isinstance(d, dict)
    assert d["run_id"] == "test_run_123"
    # Roundtrip through JSON should not raise
    json.loads(json.dumps(d))
