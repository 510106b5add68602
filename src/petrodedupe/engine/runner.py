"""End-to-end deduplication runner.

Chains the three stages of a run into a single sequential batch:

    Stage 1 (load):  read the complete record set from the store
    Stage 2 (group): partition by duplicate key, rank each group
    Stage 3 (merge): fill-if-empty merge, update survivor, delete the rest
    Stage 4 (enrich): optional; derive empty types and normalize codes on
                      every remaining record

A load failure aborts the run before any write. Merge failures are
recoverable: a failed survivor update skips its group, a failed delete is
logged and the run moves on. Dependent rows (e.g. images) of a duplicate
are moved to its survivor before the duplicate is deleted.
"""

import json
from pathlib import Path

from petrodedupe.audit import RunContext
from petrodedupe.engine.config import DedupeConfig, DedupeResult
from petrodedupe.engine.loader import LoadError, load_all_records
from petrodedupe.engine.report import DedupeReport, build_report
from petrodedupe.grouping import DuplicateGroup, group_and_rank, key_fields
from petrodedupe.merge import (
    ChildRowsError,
    Enrichment,
    MergedGroup,
    MergePolicy,
    MergeUpdateError,
    commit_merged_group,
    count_children,
    enrich_records,
    merge_group,
)
from petrodedupe.models import Record
from petrodedupe.store import RecordStore, StoreError

MERGE_POLICY = MergePolicy(name="fill_if_empty", version="1.0.0")


def _write_outputs(
    output_dir: Path,
    report: DedupeReport,
    merged_groups: list[MergedGroup],
    enrichments: list[Enrichment] | None = None,
) -> dict[str, str]:
    """Persist the summary report, per-group merge details and enrichments."""
    artifacts_dir = output_dir / "artifacts"
    reports_dir = output_dir / "reports"
    artifacts_dir.mkdir(parents=True, exist_ok=True)
    reports_dir.mkdir(parents=True, exist_ok=True)

    groups_path = artifacts_dir / "merged_groups.jsonl"
    with groups_path.open("w", encoding="utf-8") as f:
        for merged in merged_groups:
            json.dump(
                {**merged.to_dict(), "merge_policy": MERGE_POLICY.__dict__},
                f,
                ensure_ascii=False,
                sort_keys=True,
            )
            f.write("\n")

    summary_path = reports_dir / "dedupe_summary.json"
    with summary_path.open("w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, indent=2, ensure_ascii=False, sort_keys=True)

    output_files = {
        "merged_groups": str(groups_path),
        "summary": str(summary_path),
    }

    if enrichments is not None:
        enriched_path = artifacts_dir / "enriched_records.jsonl"
        with enriched_path.open("w", encoding="utf-8") as f:
            for enrichment in enrichments:
                json.dump(enrichment.to_dict(), f, ensure_ascii=False, sort_keys=True)
                f.write("\n")
        output_files["enriched_records"] = str(enriched_path)

    return output_files


def _stage_load(
    store: RecordStore,
    config: DedupeConfig,
    run: RunContext | None,
) -> list[Record]:
    if run:
        run.start_stage("load")

    records = load_all_records(store, config.entity, config.order_by)

    if run:
        run.set_records_loaded(len(records))
        run.finish_stage("load", counters={"records_loaded": len(records)})
    return records


def _stage_group(
    records: list[Record],
    config: DedupeConfig,
    run: RunContext | None,
) -> list[DuplicateGroup]:
    if run:
        run.start_stage("group", expected_records=len(records))

    groups = group_and_rank(
        records,
        mode=config.key_mode,
        policy=config.survivor_policy,
        code_field=config.code_field,
    )

    if run:
        run.finish_stage(
            "group",
            counters={
                "duplicate_groups": len(groups),
                "records_in_groups": sum(g.size for g in groups),
            },
        )
    return groups


def _stage_merge(
    store: RecordStore,
    groups: list[DuplicateGroup],
    config: DedupeConfig,
    run: RunContext | None,
) -> tuple[list[MergedGroup], list[Exception]]:
    if run:
        run.start_stage("merge", expected_records=sum(g.size for g in groups))

    logger = run.audit_logger if run else None
    protected = key_fields(config.key_mode, config.code_field)
    merged_groups: list[MergedGroup] = []
    failures: list[Exception] = []

    for group in groups:
        survivor, eliminated_ids, provenance = merge_group(
            group,
            protected_fields=protected,
            normalize_code=config.normalize_code,
            code_field=config.code_field,
        )
        merged = MergedGroup(
            key=group.key,
            category=group.category,
            survivor=survivor,
            eliminated_ids=eliminated_ids,
            provenance=provenance,
        )
        merged_groups.append(merged)

        if config.dry_run and config.child_link is not None:
            try:
                merged.child_counts = count_children(
                    store, config.child_link, [r.id for r in group.records]
                )
            except StoreError as e:
                error = ChildRowsError(
                    f"cannot count {config.child_link.entity} rows: {e}",
                    group_key=group.key,
                    record_id=group.survivor.id,
                )
                failures.append(error)
                if run:
                    run.record_error(error, stage="merge", group_key=group.key)

        if not config.dry_run:
            try:
                delete_errors = commit_merged_group(
                    store,
                    config.entity,
                    merged,
                    bulk_delete=config.bulk_delete,
                    children=config.child_link,
                    logger=logger,
                )
            except MergeUpdateError as e:
                failures.append(e)
                if run:
                    run.record_error(e, stage="merge", rid=str(e.record_id), group_key=e.group_key)
                continue

            failures.extend(delete_errors)
            if run:
                for error in delete_errors:
                    run.record_error(
                        error, stage="merge", rid=str(error.record_id), group_key=error.group_key
                    )

        if logger:
            logger.group_merged(
                group_key=merged.key,
                survivor_id=str(survivor.id),
                eliminated_ids=[str(i) for i in eliminated_ids],
                fields_filled=sorted(provenance.fields),
                dry_run=config.dry_run,
                stage="merge",
            )

    if run:
        run.finish_stage(
            "merge",
            counters={
                "groups_merged": sum(1 for m in merged_groups if m.updated or config.dry_run),
                "records_deleted": sum(len(m.deleted_ids) for m in merged_groups),
                "failures": len(failures),
            },
        )
    return merged_groups, failures


def _live_records(
    records: list[Record], merged_groups: list[MergedGroup], dry_run: bool
) -> list[Record]:
    """Records still in the store after the merge stage (planned, on dry runs)."""
    live = {r.id: r for r in records}
    for merged in merged_groups:
        if dry_run or merged.updated:
            live[merged.survivor.id] = merged.survivor
        for record_id in merged.eliminated_ids if dry_run else merged.deleted_ids:
            live.pop(record_id, None)
    return list(live.values())


def _stage_enrich(
    store: RecordStore,
    records: list[Record],
    config: DedupeConfig,
    run: RunContext | None,
) -> tuple[list[Enrichment], list[Exception]]:
    if run:
        run.start_stage("enrich", expected_records=len(records))

    enrichments, errors = enrich_records(
        store,
        config.entity,
        records,
        code_field=config.code_field,
        dry_run=config.dry_run,
        logger=run.audit_logger if run else None,
    )

    if run:
        for error in errors:
            run.record_error(error, stage="enrich", rid=str(error.record_id))
        run.finish_stage(
            "enrich",
            counters={
                "records_enriched": sum(1 for e in enrichments if e.updated or config.dry_run),
                "failures": len(errors),
            },
        )
    return enrichments, list(errors)


def run_dedupe(
    store: RecordStore,
    config: DedupeConfig | None = None,
    run: RunContext | None = None,
) -> DedupeResult:
    """Run the complete load → group → merge (→ enrich) batch against ``store``.

    Parameters
    ----------
    store : RecordStore
        Record store client, created by the caller for this run.
    config : DedupeConfig | None, optional
        Run configuration. If None, uses defaults.
    run : RunContext | None, optional
        Audit context for events and manifest. If None, no audit trail.

    Returns
    -------
    DedupeResult
        Run outcome. ``success`` is False only on a fatal load failure.

    Examples
    --------
    Offline run against a JSONL export:

        >>> from pathlib import Path
        >>> from petrodedupe.engine import DedupeConfig, run_dedupe
        >>> from petrodedupe.store import InMemoryRecordStore
        >>> store = InMemoryRecordStore.from_jsonl(Path("rocks.jsonl"), "rocks")
        >>> result = run_dedupe(store, DedupeConfig(dry_run=True))
        >>> print(result.report.duplicate_groups)
    """
    if config is None:
        config = DedupeConfig()

    try:
        records = _stage_load(store, config, run)
    except LoadError as e:
        if run:
            run.record_error(e, stage="load")
        return DedupeResult(
            success=False,
            report=DedupeReport(dry_run=config.dry_run),
            error_message=str(e),
        )

    groups = _stage_group(records, config, run)
    merged_groups, failures = _stage_merge(store, groups, config, run)

    enrichments: list[Enrichment] | None = None
    if config.fill_missing:
        live = _live_records(records, merged_groups, config.dry_run)
        enrichments, enrich_failures = _stage_enrich(store, live, config, run)
        failures.extend(enrich_failures)

    report = build_report(
        records,
        len(groups),
        merged_groups,
        enrichments=enrichments or (),
        dry_run=config.dry_run,
    )
    output_files = _write_outputs(config.output_dir, report, merged_groups, enrichments)
    if run:
        run.register_outputs(output_files.values())

    return DedupeResult(
        success=True,
        report=report,
        merged_groups=merged_groups,
        enrichments=enrichments or [],
        failures=failures,
        output_files=output_files,
    )
