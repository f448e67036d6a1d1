"""Tests for upr_health.reporting.export."""

from __future__ import annotations

import csv
import json
from pathlib import Path

import pandas as pd
import pyarrow.parquet as pq
import pytest

from upr_health.analysis.indicator_join import IndicatorTables, JOINED_COLUMNS
from upr_health.analysis.quality import build_quality_report
from upr_health.analysis.reports import build_report_tables
from upr_health.reporting.export import (
    export_frame,
    export_indicator_tables,
    export_quality_report,
    export_report_tables,
    export_to_csv,
    export_to_json,
    flatten_records_for_export,
)


# ── export_to_csv / export_to_json ────────────────────────────────────────────


def test_export_to_csv_basic(tmp_path: Path) -> None:
    """Writes a valid CSV with correct headers and values."""
    records = [
        {"state": "Norway", "n": 3, "label": "Health-related"},
        {"state": "Chile", "n": 1, "label": "Not health-related"},
    ]
    out = tmp_path / "test.csv"
    result = export_to_csv(records, out)

    assert result == out
    with out.open(encoding="utf-8") as f:
        reader = list(csv.DictReader(f))
    assert len(reader) == 2
    assert reader[1]["label"] == "Not health-related"


def test_export_to_csv_custom_fieldnames(tmp_path: Path) -> None:
    """Custom fieldnames control column order; extra keys are ignored."""
    out = tmp_path / "cols.csv"
    export_to_csv([{"a": 1, "b": 2, "c": 3}], out, fieldnames=["c", "a"])
    with out.open(encoding="utf-8") as f:
        header = f.readline().strip()
    assert header == "c,a"


def test_export_to_csv_empty_creates_empty_file(tmp_path: Path) -> None:
    out = tmp_path / "sub" / "empty.csv"
    export_to_csv([], out)
    assert out.exists()
    assert out.read_text(encoding="utf-8") == ""


def test_export_to_json_roundtrip_with_dates(tmp_path: Path) -> None:
    out = tmp_path / "nested" / "data.json"
    export_to_json({"when": pd.Timestamp("2019-01-01"), "n": 2}, out)
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["n"] == 2
    assert data["when"].startswith("2019-01-01")


# ── export_frame ──────────────────────────────────────────────────────────────


def test_export_frame_csv(tmp_path: Path) -> None:
    frame = pd.DataFrame({"cycle": [1, 2], "n": [3, 2]})
    out = export_frame(frame, tmp_path / "t.csv")
    pd.testing.assert_frame_equal(pd.read_csv(out), frame)


def test_export_frame_parquet(tmp_path: Path) -> None:
    frame = pd.DataFrame({"cycle": [1, 2], "n": [3, 2]})
    out = export_frame(frame, tmp_path / "t.parquet")
    assert pq.read_table(out).num_rows == 2


def test_export_frame_unsupported_suffix(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Unsupported"):
        export_frame(pd.DataFrame(), tmp_path / "t.xlsx")


# ── Report-level exports ──────────────────────────────────────────────────────


def test_export_report_tables_csv(tmp_path: Path, labelled_records) -> None:
    tables = build_report_tables(labelled_records)
    paths = export_report_tables(tables, tmp_path)
    assert [p.stem for p in paths] == list(tables)
    health = pd.read_csv(tmp_path / "health_by_cycle.csv")
    assert list(health.columns) == ["cycle", "health_related", "n", "n_tot", "pct"]
    assert list(health["health_related"]) == [
        "Not health-related", "Health-related", "Health-related",
    ]


def test_export_report_tables_parquet(tmp_path: Path, labelled_records) -> None:
    tables = build_report_tables(labelled_records)
    paths = export_report_tables(tables, tmp_path, fmt="parquet")
    assert all(p.suffix == ".parquet" for p in paths)
    assert pq.read_table(tmp_path / "recommendations_by_cycle.parquet").num_rows == 2


def test_export_indicator_tables(tmp_path: Path) -> None:
    empty = pd.DataFrame(columns=list(JOINED_COLUMNS))
    paths = export_indicator_tables(IndicatorTables(empty, empty), tmp_path)
    assert [p.name for p in paths] == [
        "indicators_combined.csv", "indicators_maternal_mortality.csv",
    ]


def test_export_quality_report(tmp_path: Path, labelled_records) -> None:
    out = export_quality_report(build_quality_report(labelled_records), tmp_path / "q.json")
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["total_rows"] == 5
    assert data["cycles"] == [1, 2]


# ── flatten_records_for_export ────────────────────────────────────────────────


def test_flatten_records(labelled_records, make_record) -> None:
    rows = flatten_records_for_export(labelled_records[:1] + [make_record(text=None, cycle=None)])
    assert rows[0]["health_related"] == "Health-related"
    assert rows[0]["response_upr"] == "Supported"
    assert rows[0]["sdg_linked"] == "Linked to an SDG"
    assert rows[0]["title"] == "A"
    assert rows[1]["text"] == ""
    assert rows[1]["cycle"] == ""
    assert rows[1]["health_related"] == ""
