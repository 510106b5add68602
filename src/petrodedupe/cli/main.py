"""Command-line interface for petrodedupe.

Provides CLI commands for finding and merging duplicate catalog records.
"""

import importlib.metadata
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

__all__ = ["cli"]

try:
    __version__ = importlib.metadata.version("petrodedupe")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"  # Fallback for development


def _store_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that runs against a store."""
    options = [
        click.option(
            "--url",
            envvar="SUPABASE_URL",
            help="Project URL of the hosted store (env: SUPABASE_URL)",
        ),
        click.option(
            "--key",
            envvar="SUPABASE_KEY",
            help="API key of the hosted store (env: SUPABASE_KEY)",
        ),
        click.option(
            "--snapshot",
            type=click.Path(exists=True, dir_okay=False),
            default=None,
            help="Run offline against a JSONL table export instead of the hosted store",
        ),
        click.option(
            "--entity",
            default="rocks",
            show_default=True,
            help="Entity (table) to deduplicate",
        ),
        click.option(
            "--key-mode",
            type=click.Choice(["name_category", "code"]),
            default="name_category",
            show_default=True,
            help="Group by normalized name+category, or by identifier code",
        ),
        click.option(
            "--policy",
            type=click.Choice(["completeness", "oldest"]),
            default="completeness",
            show_default=True,
            help="Keep the most complete record, or the oldest one",
        ),
        click.option(
            "--order-by",
            type=click.Choice(["name", "created_at"]),
            default="name",
            show_default=True,
            help="Loader ordering",
        ),
        click.option(
            "--code-field",
            default="rock_code",
            show_default=True,
            help="Identifier code column",
        ),
        click.option(
            "--child-entity",
            default=None,
            help="Dependent table (e.g. rock_images) whose rows follow the survivor",
        ),
        click.option(
            "--child-key",
            default="rock_id",
            show_default=True,
            help="Foreign key column of --child-entity",
        ),
        click.option(
            "--output-dir",
            "-o",
            type=click.Path(file_okay=False),
            default="out",
            show_default=True,
            help="Output directory for reports and audit trail",
        ),
        click.option("--verbose", "-v", is_flag=True, help="Enable verbose output"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _execute(
    *,
    url: str | None,
    key: str | None,
    snapshot: str | None,
    snapshot_out: str | None,
    verbose: bool,
    **config_options: Any,
) -> Any:
    """Open the store, run the batch, close the store. Exits 1 on load failure."""
    from petrodedupe.api import dedupe_snapshot
    from petrodedupe.audit import RunContext, redact_url
    from petrodedupe.engine import DedupeConfig, run_dedupe
    from petrodedupe.store import PostgrestRecordStore

    try:
        config = DedupeConfig(**config_options)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    if snapshot is None and not (url and key):
        raise click.UsageError(
            "Provide --snapshot, or --url and --key (or SUPABASE_URL/SUPABASE_KEY)"
        )
    if snapshot is not None and config.child_entity is not None:
        raise click.UsageError("--child-entity needs the hosted store, not --snapshot")

    if verbose:
        source = snapshot or redact_url(url or "")
        click.echo(f"Deduplicating {config.entity} from {source}", err=True)
        click.echo(f"  key mode: {config.key_mode.value}", err=True)
        click.echo(f"  survivor policy: {config.survivor_policy.value}", err=True)
        click.echo(f"  dry run: {config.dry_run}", err=True)

    run = RunContext.start(output_dir=config.output_dir, parameters=config.to_dict())
    result = None
    try:
        if snapshot is not None:
            run.set_store("snapshot", Path(snapshot).name, config.entity)
            result = dedupe_snapshot(
                snapshot,
                output_path=snapshot_out,
                run=run,
                **config.to_dict(),
            )
        else:
            run.set_store("postgrest", redact_url(url or ""), config.entity)
            with PostgrestRecordStore(url or "", key or "") as store:
                result = run_dedupe(store, config, run)
    finally:
        status = "success" if result is not None and result.success else "failed"
        records = result.report.records_scanned if result is not None else None
        run.finish(status=status, records_processed=records)

    if not result.success:
        click.secho(f"✗ Load failed: {result.error_message}", fg="red", err=True)
        sys.exit(1)

    for failure in result.failures:
        group_key = getattr(failure, "group_key", None)
        scope = f" [{group_key}]" if group_key else ""
        click.secho(
            f"✗ {type(failure).__name__}{scope} "
            f"id {getattr(failure, 'record_id', '?')}: {failure}",
            fg="yellow",
            err=True,
        )

    if verbose:
        for merged in result.merged_groups:
            click.echo(
                f"  {merged.key}: keep {merged.survivor.id}, "
                f"remove {', '.join(str(i) for i in merged.eliminated_ids)}",
                err=True,
            )
        for name, path in result.output_files.items():
            click.echo(f"  {name}: {path}", err=True)

    return result


@click.group()
@click.version_option(version=__version__, prog_name="petrodedupe")
def cli() -> None:
    """Find and merge duplicate catalog records.

    Use 'petrodedupe COMMAND --help' for command-specific help.
    """


@cli.command()
@_store_options
@click.option(
    "--no-normalize-code",
    is_flag=True,
    help="Keep whitespace in the survivor's identifier code",
)
@click.option(
    "--bulk-delete",
    is_flag=True,
    help="Delete each group's duplicates with a single request",
)
@click.option(
    "--fill-missing",
    is_flag=True,
    help="After merging, derive empty types and normalize codes on every remaining record",
)
@click.option("--dry-run", is_flag=True, help="Report what would change; write nothing")
@click.option(
    "--snapshot-out",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the deduplicated snapshot here instead of in place",
)
def dedupe(
    url: str | None,
    key: str | None,
    snapshot: str | None,
    entity: str,
    key_mode: str,
    policy: str,
    order_by: str,
    code_field: str,
    child_entity: str | None,
    child_key: str,
    output_dir: str,
    verbose: bool,
    no_normalize_code: bool,
    bulk_delete: bool,
    fill_missing: bool,
    dry_run: bool,
    snapshot_out: str | None,
) -> None:
    """Merge and delete duplicate records.

    Groups records by duplicate key, keeps the top-ranked record of each
    group, fills its empty fields from the others, then deletes them.

    Examples
    --------
        petrodedupe dedupe --dry-run
        petrodedupe dedupe --snapshot rocks.jsonl --snapshot-out rocks.clean.jsonl
        petrodedupe dedupe --key-mode code --policy oldest
        petrodedupe dedupe --child-entity rock_images --fill-missing
    """
    result = _execute(
        url=url,
        key=key,
        snapshot=snapshot,
        snapshot_out=snapshot_out,
        verbose=verbose,
        entity=entity,
        key_mode=key_mode,
        survivor_policy=policy,
        order_by=order_by,
        code_field=code_field,
        child_entity=child_entity,
        child_key=child_key,
        normalize_code=not no_normalize_code,
        bulk_delete=bulk_delete,
        fill_missing=fill_missing,
        dry_run=dry_run,
        output_dir=Path(output_dir),
    )

    report = result.report
    if report.duplicate_groups == 0:
        click.secho(f"✓ No duplicates found in {report.records_scanned} records", fg="green")
    else:
        verb = "would remove" if report.dry_run else "removed"
        click.secho(
            f"✓ Scanned {report.records_scanned} records: "
            f"{report.duplicate_groups} duplicate groups, "
            f"{report.survivors} kept, {report.eliminated} {verb}, "
            f"{report.fields_filled} fields filled",
            fg="green",
        )

    if fill_missing:
        verb = "would enrich" if report.dry_run else "enriched"
        click.echo(f"  {report.records_enriched} records {verb}")

    failures = report.update_failures + report.delete_failures + report.enrich_failures
    if failures:
        click.secho(
            f"  {report.update_failures} update failures, "
            f"{report.delete_failures} delete failures, "
            f"{report.enrich_failures} enrich failures (see events.jsonl)",
            fg="yellow",
        )


@cli.command()
@_store_options
def check(
    url: str | None,
    key: str | None,
    snapshot: str | None,
    entity: str,
    key_mode: str,
    policy: str,
    order_by: str,
    code_field: str,
    child_entity: str | None,
    child_key: str,
    output_dir: str,
    verbose: bool,
) -> None:
    """Report duplicates and per-category counts without changing anything.

    Examples
    --------
        petrodedupe check
        petrodedupe check --snapshot rocks.jsonl --key-mode code
        petrodedupe check --child-entity rock_images
    """
    result = _execute(
        url=url,
        key=key,
        snapshot=snapshot,
        snapshot_out=None,
        verbose=verbose,
        entity=entity,
        key_mode=key_mode,
        survivor_policy=policy,
        order_by=order_by,
        code_field=code_field,
        child_entity=child_entity,
        child_key=child_key,
        dry_run=True,
        output_dir=Path(output_dir),
    )

    report = result.report
    click.echo(f"Found {report.records_scanned} total {entity}")
    click.echo(f"\n{entity.capitalize()} by category:")
    for category, count in report.records_by_category.items():
        click.echo(f"- {category}: {count}")

    if report.duplicate_groups == 0:
        click.secho("\n✓ No duplicates found", fg="green")
        return

    click.echo(f"\nFound {report.duplicate_groups} groups with duplicates:")
    for merged in result.merged_groups:
        click.echo(
            f"- {merged.key}: {len(merged.eliminated_ids) + 1} entries, "
            f"keep {merged.survivor.id}"
        )
        if child_entity is None or not merged.child_counts:
            continue
        for record_id, count in merged.child_counts.items():
            click.echo(f"    id {record_id}: {count} {child_entity}")


if __name__ == "__main__":
    cli()
