"""
``tire-slingers`` command line.

Commands
--------
  init-db                  create tables and apply migrations
  validate-config          print the merged configuration
  recommend --org ID       refresh one yard (``--dry-run`` to preview)
  refresh-stale            refresh every yard flagged stale
  show-recommendations     print stored recommendations for a yard
  export-recommendations   write CSV + JSON reports for a yard
  list-runs                show recent pipeline runs (``--slug`` for one)

Every command takes ``--config PATH``; without it ``config/default.toml`` is
used. Errors the operator can fix (bad config, failed refresh) print an
``[ERROR]`` line to stderr and exit with code 1.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="tire-slingers",
    help="Stock recommendations for tire yards: what to stock, purge or hold.",
    add_completion=False,
    no_args_is_help=True,
)


def _config_option():
    return typer.Option(
        None,
        "--config",
        help="TOML config file (default: config/default.toml).",
    )


def _org_option():
    return typer.Option(..., "--org", help="Organization (yard) id.")


def _fail(message: str) -> typer.Exit:
    typer.echo(f"[ERROR] {message}", err=True)
    return typer.Exit(code=1)


def _bootstrap(config_path: Optional[str], with_logging: bool = True):
    """Load config (exiting 1 on failure) and install logging handlers."""
    from tire_slingers.config import load_config
    from tire_slingers.utils.logging import configure_logging

    try:
        config = load_config(Path(config_path) if config_path else None)
    except FileNotFoundError as exc:
        raise _fail(str(exc))
    except ValueError as exc:
        raise _fail(f"Config validation failed: {exc}")

    if with_logging:
        configure_logging(config.logging)
    return config


def _print_table(recs) -> None:
    from tire_slingers.recommendations.reporter import format_need

    typer.echo(
        f"  {'Size':<12}{'On hand':>8}{'Target':>8}{'Need':>7}  "
        f"{'Action':<7}{'Priority':<9}{'Flag':<10}Reasons"
    )
    for rec in recs:
        typer.echo(
            f"  {rec.size_display:<12}{rec.current_stock:>8}{rec.target_stock:>8}"
            f"{format_need(rec.need_units):>7}  {rec.action:<7}{rec.priority:<9}"
            f"{rec.flag or '':<10}{'; '.join(rec.reasons)}"
        )


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None, "--db-path", help="Initialize this file instead of database.db_path."
    ),
    config_path: Optional[str] = _config_option(),
) -> None:
    """Create every table and index, then apply pending migrations. Idempotent."""
    from tire_slingers.db.connection import db_session
    from tire_slingers.db.migrations import run_migrations
    from tire_slingers.db.schema import ALL_TABLE_NAMES, apply_schema

    config = _bootstrap(config_path)
    target = db_path or config.database.db_path
    typer.echo(f"Database: {target}")

    with db_session(config.database, target) as conn:
        apply_schema(conn)
        applied = run_migrations(conn)

    typer.echo(f"  {len(ALL_TABLE_NAMES)} tables verified, {applied} migration(s) applied.")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = _config_option(),
    show_full: bool = typer.Option(False, "--full", help="Also dump the whole config as JSON."),
) -> None:
    """Load and validate the configuration, then print the key values."""
    config = _bootstrap(config_path, with_logging=False)

    typer.echo("Configuration validated successfully.")
    rows = [
        ("Database path", config.database.db_path),
        ("WAL mode", config.database.wal_mode),
        ("Report dir", config.data.report_output_dir),
        ("Default capacity", config.engine.default_capacity_total_tires),
        ("Log level", config.logging.level),
        ("Debug mode", config.debug),
    ]
    for label, value in rows:
        typer.echo(f"  {label + ':':<18}{value}")

    if show_full:
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))
    typer.echo("[OK] Config valid.")


@app.command("recommend")
def recommend(
    org_id: str = _org_option(),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Compute and print, but store nothing."
    ),
    config_path: Optional[str] = _config_option(),
) -> None:
    """Recompute one yard's recommendations and replace the stored set.

    The yard's stale flag is cleared on success, whether or not it was set.
    """
    from tire_slingers.db.connection import db_session
    from tire_slingers.pipeline.recommend import RecommendStage
    from tire_slingers.recommendations.engine import compute_recommendations

    config = _bootstrap(config_path)

    if dry_run:
        with db_session(config.database) as conn:
            result = compute_recommendations(
                conn, org_id, default_capacity=config.engine.default_capacity_total_tires
            )
        counts = result.count_by_action()
        typer.echo(
            f"[DRY RUN] org={org_id}: {len(result.recommendations)} size(s) | "
            f"stock {counts['stock']}, purge {counts['purge']}, hold {counts['hold']}"
        )
        typer.echo(
            f"  On hand {result.total_current_stock}, "
            f"projected {result.capacity_used} of {result.capacity}"
        )
        _print_table(result.recommendations)
        return

    stage = RecommendStage(config=config)
    try:
        run = stage.run(org_id=org_id)
    except Exception as exc:
        raise _fail(f"Refresh failed for org={org_id}: {exc}")

    (outcome,) = stage.results
    typer.echo(f"  Recommendations written: {run.rows_processed}")
    typer.echo(
        f"  On hand {outcome.total_current_stock}, projected {outcome.capacity_used}"
    )
    typer.echo(f"[OK] org={org_id} refreshed | run_slug={run.run_slug}")


@app.command("refresh-stale")
def refresh_stale(config_path: Optional[str] = _config_option()) -> None:
    """Refresh every yard flagged stale; exit 1 if any of them failed."""
    from tire_slingers.pipeline.recommend import RecommendStage

    config = _bootstrap(config_path)

    stage = RecommendStage(config=config)
    try:
        run = stage.run()
    except Exception as exc:
        raise _fail(f"Batch refresh failed: {exc}")

    if not stage.results:
        typer.echo("[OK] No stale organizations.")
        return

    for result in stage.results:
        detail = (
            f"{result.recommendations} recommendation(s)"
            if result.status == "success"
            else result.error
        )
        typer.echo(f"  {result.org_id:<20}{result.status:<9}{detail}")

    failed = sum(1 for r in stage.results if r.status == "failed")
    if failed:
        raise _fail(f"{failed} of {len(stage.results)} organization(s) failed.")
    typer.echo(f"[OK] {len(stage.results)} organization(s) refreshed | run_slug={run.run_slug}")


@app.command("show-recommendations")
def show_recommendations(
    org_id: str = _org_option(),
    show_all: bool = typer.Option(False, "--all", help="Include hold rows."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
    config_path: Optional[str] = _config_option(),
) -> None:
    """Print a yard's stored recommendations, most urgent first."""
    from tire_slingers.db.connection import db_session
    from tire_slingers.recommendations.engine import get_recommendations, needs_refresh

    config = _bootstrap(config_path)

    with db_session(config.database) as conn:
        recs = get_recommendations(conn, org_id, include_hold=show_all)
        stale = needs_refresh(conn, org_id)

    if as_json:
        typer.echo(json.dumps([r.model_dump(mode="json") for r in recs], indent=2))
        return

    if stale:
        typer.echo(f"[WARN] Recommendations for org={org_id} are stale; run 'recommend'.")
    if not recs:
        typer.echo(f"No stored recommendations for org={org_id}.")
        return
    _print_table(recs)


@app.command("export-recommendations")
def export_recommendations(
    org_id: str = _org_option(),
    out_dir: Optional[str] = typer.Option(
        None, "--out-dir", help="Directory for the files (default: data.report_output_dir)."
    ),
    config_path: Optional[str] = _config_option(),
) -> None:
    """Write a yard's stored recommendations to CSV and JSON."""
    from tire_slingers.db.connection import db_session
    from tire_slingers.recommendations.engine import get_recommendations
    from tire_slingers.recommendations.reporter import (
        write_recommendation_csv,
        write_recommendation_json,
    )

    config = _bootstrap(config_path)

    with db_session(config.database) as conn:
        recs = get_recommendations(conn, org_id)

    target = Path(out_dir or config.data.report_output_dir)
    today = date.today()
    for path in (
        write_recommendation_csv(recs, target, org_id, today),
        write_recommendation_json(recs, target, org_id, today),
    ):
        typer.echo(f"  {path}")
    typer.echo(f"[OK] {len(recs)} recommendation(s) exported.")


@app.command("list-runs")
def list_runs(
    limit: int = typer.Option(20, "--limit", min=1, help="How many recent runs to show."),
    run_slug: Optional[str] = typer.Option(
        None, "--slug", help="Show one run in detail instead of the list."
    ),
    config_path: Optional[str] = _config_option(),
) -> None:
    """Print recent pipeline runs from the audit table, newest first."""
    from tire_slingers.db.connection import db_session
    from tire_slingers.db.repositories.run_repo import RunMetadataRepository
    from tire_slingers.utils.time_utils import format_db_timestamp

    config = _bootstrap(config_path)

    with db_session(config.database) as conn:
        repo = RunMetadataRepository(conn)
        if run_slug:
            run = repo.get_run_by_slug(run_slug)
            if run is None:
                raise _fail(f"No run with run_slug={run_slug}.")
            runs = [run]
        else:
            runs = repo.get_recent_runs(limit=limit)

    if not runs:
        typer.echo("No runs recorded.")
        return

    if run_slug:
        (run,) = runs
        duration = run.duration_seconds
        for label, value in [
            ("Run slug", run.run_slug),
            ("Stage", run.pipeline_stage),
            ("Status", run.status),
            ("Org", run.org_id or "<stale batch>"),
            ("Rows", run.rows_processed),
            ("Started", format_db_timestamp(run.started_at)),
            ("Duration (s)", f"{duration:.1f}" if duration is not None else "-"),
            ("Error", run.error_message or "-"),
        ]:
            typer.echo(f"  {label + ':':<14}{value}")
        return

    typer.echo(f"  {'Started':<22}{'Stage':<11}{'Status':<9}{'Org':<16}{'Rows':>6}  Run slug")
    for run in runs:
        typer.echo(
            f"  {format_db_timestamp(run.started_at):<22}{run.pipeline_stage:<11}"
            f"{run.status:<9}{(run.org_id or '-'):<16}{run.rows_processed:>6}  {run.run_slug}"
        )


if __name__ == "__main__":
    app()
