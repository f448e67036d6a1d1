"""
Flat-file export helpers for report tables and labelled records.

All functions write to disk and return the written ``Path`` (or paths).
Parent directories are created as needed.

DataFrames go through ``export_frame()``, which picks the writer from the
file suffix: ``.csv`` (UTF-8, no index) or ``.parquet`` (pyarrow). Record
lists are flattened with ``flatten_records_for_export()`` first so the CSV
has one plain string per cell.
"""

from __future__ import annotations

import csv
import json
from dataclasses import asdict
from pathlib import Path
from typing import Iterable, Mapping

import pandas as pd

from upr_health.analysis.indicator_join import IndicatorTables
from upr_health.analysis.quality import RecordQualityReport
from upr_health.models.recommendation import Recommendation

SUPPORTED_FRAME_FORMATS = ("csv", "parquet")


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order.  If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records:
        path.write_text("", encoding="utf-8")
        return path
    cols = fieldnames or list(records[0].keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(
    data: dict | list,
    path: Path,
) -> Path:
    """Write ``data`` to a pretty-printed JSON file.

    Args:
        data: Dict or list to serialise.
        path: Destination file path (parent dirs created if missing).

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def export_frame(frame: pd.DataFrame, path: Path) -> Path:
    """Write ``frame`` as CSV or Parquet depending on ``path``'s suffix.

    Raises:
        ValueError: For any suffix other than ``.csv`` / ``.parquet``.
    """
    suffix = path.suffix.lower().lstrip(".")
    if suffix not in SUPPORTED_FRAME_FORMATS:
        raise ValueError(
            f"Unsupported export format '{path.suffix}'. Use .csv or .parquet."
        )
    path.parent.mkdir(parents=True, exist_ok=True)
    if suffix == "csv":
        frame.to_csv(path, index=False, encoding="utf-8")
    else:
        frame.to_parquet(path, index=False, engine="pyarrow")
    return path


def export_report_tables(
    tables: Mapping[str, pd.DataFrame],
    output_dir: Path,
    fmt: str = "csv",
) -> list[Path]:
    """Write each report table to ``{output_dir}/{name}.{fmt}``.

    Categorical columns are written as their plain labels.
    """
    paths: list[Path] = []
    for name, table in tables.items():
        plain = table.astype(
            {c: "object" for c in table.columns if isinstance(table[c].dtype, pd.CategoricalDtype)}
        )
        paths.append(export_frame(plain, output_dir / f"{name}.{fmt}"))
    return paths


def export_indicator_tables(
    indicators: IndicatorTables,
    output_dir: Path,
    fmt: str = "csv",
) -> list[Path]:
    """Write the combined and maternal mortality indicator tables."""
    return [
        export_frame(indicators.combined, output_dir / f"indicators_combined.{fmt}"),
        export_frame(
            indicators.maternal_mortality, output_dir / f"indicators_maternal_mortality.{fmt}"
        ),
    ]


def export_quality_report(report: RecordQualityReport, path: Path) -> Path:
    """Write a quality report as JSON."""
    return export_to_json(asdict(report), path)


def flatten_records_for_export(records: Iterable[Recommendation]) -> list[dict]:
    """Return one flat row dict per record (enums as labels, dates as ISO strings).

    Unset values become empty strings so the CSV has no ``None`` literals.
    """
    rows: list[dict] = []
    for r in records:
        rows.append(
            {
                "document_code":      r.document_code or "",
                "paragraph":          r.paragraph or "",
                "title":              r.title or "",
                "state_under_review": r.state_under_review or "",
                "cycle":              r.cycle if r.cycle is not None else "",
                "year":               r.year.isoformat() if r.year else "",
                "sdg_goals":          r.sdg_goals or "",
                "sdg_linked":         str(r.sdg_linked),
                "response_upr":       str(r.response_upr) if r.response_upr else "",
                "health_related":     str(r.health_related) if r.health_related else "",
                "text":               r.text or "",
            }
        )
    return rows
