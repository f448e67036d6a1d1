"""Tests for the ASCII formatters."""

from __future__ import annotations

import pandas as pd

from upr_health.analysis.classifier import explain
from upr_health.analysis.indicator_join import JOINED_COLUMNS
from upr_health.analysis.quality import build_quality_report
from upr_health.analysis.reports import build_report_tables
from upr_health.reporting.formatters import (
    format_indicator_summary,
    format_quality_report,
    format_rule_matches,
    format_share_table,
)
from upr_health.taxonomy.categories import HealthLabel


class TestFormatShareTable:
    def test_header_and_rows(self, labelled_records):
        table = build_report_tables(labelled_records)["health_by_cycle"]
        out = format_share_table(table, "Health-related share per cycle")
        lines = out.splitlines()
        assert "=== Health-related share per cycle ===" in lines
        assert any("n_tot" in line for line in lines)
        assert "66.7" in out
        assert "100.0" in out

    def test_max_rows_footer(self, labelled_records):
        table = build_report_tables(labelled_records)["health_by_state"]
        out = format_share_table(table, "States", max_rows=2)
        assert "... 3 more row(s)" in out

    def test_empty_table(self):
        empty = pd.DataFrame(columns=["cycle", "n", "n_tot", "pct"])
        assert "no rows" in format_share_table(empty, "Empty")

    def test_long_labels_truncated(self):
        table = pd.DataFrame(
            {"state_under_review": ["X" * 60], "n": [1], "n_tot": [1], "pct": [100.0]}
        )
        out = format_share_table(table, "Long")
        assert "X" * 60 not in out
        assert "..." in out


class TestFormatQualityReport:
    def test_clean(self, labelled_records):
        out = format_quality_report(build_quality_report(labelled_records))
        assert "CLEAN" in out
        assert "Cycles:               1, 2" in out
        assert "Health-related:       60.0%" in out

    def test_issues(self, make_record):
        out = format_quality_report(build_quality_report([make_record(text=None)]))
        assert "ISSUES" in out
        assert "Health-related" not in out


class TestFormatRuleMatches:
    def test_matches_listed(self):
        matches = explain("forced marriage", "Goal 3 | Good health")
        out = format_rule_matches(HealthLabel.HEALTH_RELATED, matches, "v1")
        assert out.splitlines()[0] == "Label: Health-related  (rule set v1)"
        assert "[sdg_health_goal]" in out
        assert "AND marriage" in out

    def test_no_match(self):
        out = format_rule_matches(HealthLabel.NOT_HEALTH_RELATED, [])
        assert out.splitlines() == ["Label: Not health-related", "  (no rule fired)"]


class TestFormatIndicatorSummary:
    def test_one_line_per_code(self):
        frame = pd.DataFrame(
            {
                "indicator_code": ["LE", "LE", "MMR"],
                "indicator_name": ["Life expectancy", "Life expectancy", None],
                "country_code": ["NOR", "XYZ", None],
                "country_name": ["Norway", None, None],
                "region_code": ["EUR", "EUR", "AFR"],
                "region_name": ["Europe", "Europe", "Africa"],
                "spatial_type": ["COUNTRY", "COUNTRY", "REGION"],
                "year": pd.array([2010, 2019, 2017], dtype="Int64"),
                "date": pd.to_datetime(["2010-01-01", "2019-01-01", "2017-01-01"]),
                "value": [80.0, None, 525.0],
            }
        )
        out = format_indicator_summary(frame)
        le_line = next(line for line in out.splitlines() if line.strip().startswith("LE "))
        assert "2010-2019" in le_line
        assert "Life expectancy" in le_line
        assert "(unknown)" in out

    def test_empty(self):
        out = format_indicator_summary(pd.DataFrame(columns=list(JOINED_COLUMNS)))
        assert "(no observations)" in out
