"""
UPR Health Monitor — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Execute action (classify, aggregate, fetch indicators, ...).
  4. Report result to stdout; errors go to stderr as ``[ERROR] ...`` with
     exit code 1.

Install and run::

    pip install -e .
    upr-health --help
    upr-health validate-config
    upr-health explain "Ensure access to clean water and sanitation"
    upr-health classify --file data/raw/upr_recommendations.parquet
    upr-health report --export --review-sheet --sample 200
    upr-health fetch-indicators --concurrent
    upr-health run-report --export
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import httpx
import typer

app = typer.Typer(
    name="upr-health",
    help="UPR Health Monitor — health classification of UPR recommendations.",
    add_completion=False,
)

_PIPELINE_ERRORS = (ValueError, OSError, httpx.HTTPError)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from upr_health.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from upr_health.utils.logging import configure_logging
    configure_logging(config.logging)


def _fail(exc: object) -> typer.Exit:
    typer.echo(f"[ERROR] {exc}", err=True)
    return typer.Exit(code=1)


def _check_format(fmt: str) -> str:
    from upr_health.reporting.export import SUPPORTED_FRAME_FORMATS

    fmt = fmt.lower()
    if fmt not in SUPPORTED_FRAME_FORMATS:
        typer.echo(
            f"[ERROR] Unsupported format '{fmt}'. Use one of {SUPPORTED_FRAME_FORMATS}.",
            err=True,
        )
        raise typer.Exit(code=1)
    return fmt


def _echo_tables(tables: dict, max_rows: Optional[int]) -> None:
    from upr_health.analysis.reports import REPORT_TABLES
    from upr_health.reporting.formatters import format_share_table

    titles = {spec.name: spec.title for spec in REPORT_TABLES}
    for name, table in tables.items():
        typer.echo(format_share_table(table, titles.get(name, name), max_rows=max_rows))


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Records file:     {config.data.records_path}")
    typer.echo(f"  Output dir:       {config.data.output_dir}")
    typer.echo(f"  Mechanism:        {config.loader.mechanism}")
    typer.echo(f"  Rule set:         {config.classifier.ruleset_version}")
    typer.echo(f"  Indicators:       {', '.join(config.indicators.indicator_codes)}")
    typer.echo(f"  MMR indicator:    {config.indicators.maternal_mortality_code}")
    typer.echo(f"  GHO base URL:     {config.indicators.base_url}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("explain")
def explain_text(
    text: str = typer.Argument(..., help="Recommendation text to classify."),
    sdg_goals: Optional[str] = typer.Option(
        None,
        "--sdg-goals",
        help="SDG linkage string, e.g. 'SDG 3: Good health and well-being'.",
    ),
    ruleset: Optional[str] = typer.Option(
        None,
        "--ruleset",
        help="Rule set version (default: config.classifier.ruleset_version).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Classify one text and show which rules and terms fired."""
    from upr_health.analysis.classifier import classify, explain
    from upr_health.reporting.formatters import format_rule_matches
    from upr_health.taxonomy.health_keywords import get_ruleset

    config = _load_config_or_exit(config_path)

    try:
        rules = get_ruleset(ruleset or config.classifier.ruleset_version)
    except KeyError as exc:
        raise _fail(exc.args[0])

    label = classify(text, sdg_goals, rules)
    matches = explain(text, sdg_goals, rules)
    typer.echo(format_rule_matches(label, matches, rules.version))


@app.command("classify")
def classify_file(
    records_file: Optional[str] = typer.Option(
        None,
        "--file",
        "-f",
        help="Recommendations file (.parquet, .feather or .csv). Defaults to config.data.records_path.",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the labelled records to this CSV file.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Load and classify recommendations; print a quality summary.

    \b
    Steps:
      1. Load the file (mechanism filter, column normalisation).
      2. Label every record Health-related / Not health-related.
      3. Print record counts, null counts and the health-related share.
    """
    from upr_health.analysis.quality import build_quality_report
    from upr_health.pipeline.classify import ClassifyStage
    from upr_health.reporting.export import export_to_csv, flatten_records_for_export
    from upr_health.reporting.formatters import format_quality_report

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    stage = ClassifyStage(config)
    try:
        run = stage.run(records_path=records_file)
    except _PIPELINE_ERRORS as exc:
        raise _fail(exc)

    typer.echo(f"classify | file={run.source_path} | records={run.rows_processed}")
    typer.echo(format_quality_report(build_quality_report(stage.output)))

    if output:
        path = export_to_csv(flatten_records_for_export(stage.output), Path(output))
        typer.echo(f"  Labelled records written to: {path}")

    typer.echo("")
    typer.echo("[OK] Classification complete.")


@app.command("report")
def report(
    records_file: Optional[str] = typer.Option(
        None,
        "--file",
        "-f",
        help="Recommendations file. Defaults to config.data.records_path.",
    ),
    export: bool = typer.Option(
        False,
        "--export",
        help="Write every table to the output directory.",
    ),
    output_dir: Optional[str] = typer.Option(
        None,
        "--output-dir",
        help="Override config.data.output_dir.",
    ),
    fmt: str = typer.Option(
        "csv",
        "--format",
        help="Export format for tables: csv or parquet.",
    ),
    review_sheet: bool = typer.Option(
        False,
        "--review-sheet",
        help="Also write review_sheet.csv with the rules that fired per record.",
    ),
    sample: Optional[int] = typer.Option(
        None,
        "--sample",
        help="Sample size for the review sheet (default: all records).",
    ),
    seed: int = typer.Option(
        0,
        "--seed",
        help="Random seed for review sheet sampling.",
    ),
    max_rows: Optional[int] = typer.Option(
        20,
        "--max-rows",
        help="Rows shown per table on screen.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Classify recommendations and print the aggregated share tables.

    No network access: the GHO indicators are handled by 'fetch-indicators'
    and 'run-report'.
    """
    from upr_health.analysis.review import build_review_sheet
    from upr_health.pipeline.aggregate import AggregateStage
    from upr_health.pipeline.classify import ClassifyStage
    from upr_health.reporting.export import export_frame, export_report_tables
    from upr_health.taxonomy.health_keywords import get_ruleset

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    fmt = _check_format(fmt)
    target_dir = Path(output_dir or config.data.output_dir)

    classify = ClassifyStage(config)
    aggregate = AggregateStage(config)
    try:
        classify.run(records_path=records_file)
        aggregate.run(records=classify.output)
    except _PIPELINE_ERRORS as exc:
        raise _fail(exc)

    typer.echo(f"report | records={len(classify.output)} | tables={len(aggregate.output)}")
    _echo_tables(aggregate.output, max_rows)

    typer.echo("")
    if export:
        paths = export_report_tables(aggregate.output, target_dir, fmt)
        typer.echo(f"  Wrote {len(paths)} table(s) to {target_dir}")

    if review_sheet:
        rules = get_ruleset(config.classifier.ruleset_version)
        sheet = build_review_sheet(classify.output, rules, sample_size=sample, seed=seed)
        path = export_frame(sheet, target_dir / "review_sheet.csv")
        typer.echo(f"  Review sheet ({len(sheet)} rows) written to: {path}")

    typer.echo("[OK] Report complete.")


@app.command("fetch-indicators")
def fetch_indicators(
    concurrent: Optional[bool] = typer.Option(
        None,
        "--concurrent/--sequential",
        help="Fetch indicator series concurrently (default: config.indicators.concurrent).",
    ),
    export: bool = typer.Option(
        False,
        "--export",
        help="Write the joined indicator tables to the output directory.",
    ),
    output_dir: Optional[str] = typer.Option(
        None,
        "--output-dir",
        help="Override config.data.output_dir.",
    ),
    fmt: str = typer.Option(
        "csv",
        "--format",
        help="Export format: csv or parquet.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Fetch WHO GHO indicator series and join them against reference tables.

    \b
    Requests:
      GET /DIMENSION/{GHO,COUNTRY,REGION}/DimensionValues
      GET /{code}   for each configured indicator + maternal mortality
    Any failed request aborts the command.
    """
    from upr_health.pipeline.indicators import IndicatorStage
    from upr_health.reporting.export import export_indicator_tables
    from upr_health.reporting.formatters import format_indicator_summary

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    fmt = _check_format(fmt)

    if concurrent is not None:
        config = config.model_copy(
            update={"indicators": config.indicators.model_copy(update={"concurrent": concurrent})}
        )

    stage = IndicatorStage(config)
    try:
        stage.run()
    except _PIPELINE_ERRORS as exc:
        raise _fail(exc)

    typer.echo(format_indicator_summary(stage.output.combined, "Health Indicators"))
    typer.echo(format_indicator_summary(stage.output.maternal_mortality, "Maternal Mortality Ratio"))

    typer.echo("")
    if export:
        target_dir = Path(output_dir or config.data.output_dir)
        paths = export_indicator_tables(stage.output, target_dir, fmt)
        typer.echo(f"  Wrote {len(paths)} indicator table(s) to {target_dir}")

    typer.echo("[OK] Indicators fetched.")


@app.command("run-report")
def run_report(
    records_file: Optional[str] = typer.Option(
        None,
        "--file",
        "-f",
        help="Recommendations file. Defaults to config.data.records_path.",
    ),
    skip_indicators: bool = typer.Option(
        False,
        "--skip-indicators",
        help="Do not fetch GHO indicators (offline run).",
    ),
    export: bool = typer.Option(
        False,
        "--export",
        help="Write all tables and the quality report to the output directory.",
    ),
    output_dir: Optional[str] = typer.Option(
        None,
        "--output-dir",
        help="Override config.data.output_dir.",
    ),
    fmt: str = typer.Option(
        "csv",
        "--format",
        help="Export format for tables: csv or parquet.",
    ),
    max_rows: Optional[int] = typer.Option(
        20,
        "--max-rows",
        help="Rows shown per table on screen.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Run the full report: classify, quality, aggregate, indicators.

    \b
    Steps:
      1. ClassifyStage   — load + label recommendations.
      2. Quality summary — null counts, cycles, shares.
      3. AggregateStage  — every report share table.
      4. IndicatorStage  — GHO fetch + join (skipped with --skip-indicators).
    """
    from upr_health.pipeline.orchestrator import ReportOrchestrator
    from upr_health.reporting.export import (
        export_indicator_tables,
        export_quality_report,
        export_report_tables,
    )
    from upr_health.reporting.formatters import (
        format_indicator_summary,
        format_quality_report,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    fmt = _check_format(fmt)

    try:
        result = ReportOrchestrator(config).run(
            records_path=records_file,
            include_indicators=not skip_indicators,
        )
    except _PIPELINE_ERRORS as exc:
        raise _fail(exc)

    typer.echo(format_quality_report(result.quality))
    _echo_tables(result.tables, max_rows)
    if result.indicators is not None:
        typer.echo(format_indicator_summary(result.indicators.combined, "Health Indicators"))
        typer.echo(
            format_indicator_summary(
                result.indicators.maternal_mortality, "Maternal Mortality Ratio"
            )
        )

    typer.echo("")
    if export:
        target_dir = Path(output_dir or config.data.output_dir)
        paths = export_report_tables(result.tables, target_dir, fmt)
        paths.append(export_quality_report(result.quality, target_dir / "quality_report.json"))
        if result.indicators is not None:
            paths.extend(export_indicator_tables(result.indicators, target_dir, fmt))
        typer.echo(f"  Wrote {len(paths)} file(s) to {target_dir}")

    typer.echo("[OK] Report run complete.")


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
