"""Tests for the manual review sheet."""

from __future__ import annotations

import pandas as pd

from upr_health.analysis.review import REVIEW_COLUMNS, build_review_sheet
from upr_health.taxonomy.categories import HealthLabel


def _records(make_record):
    return [
        make_record(text="Provide clean water and sanitation", paragraph="1 | Water"),
        make_record(text="Abolish the death penalty", paragraph="2 | Death penalty"),
        make_record(text="forced marriage of girls", paragraph="3 | Marriage"),
        make_record(text=None, sdg_goals="Goal 3 | Good health", paragraph="4 | Blank"),
    ]


def test_columns_and_rows(make_record) -> None:
    sheet = build_review_sheet(_records(make_record))
    assert list(sheet.columns) == list(REVIEW_COLUMNS)
    assert len(sheet) == 4
    assert list(sheet["title"]) == ["Water", "Death penalty", "Marriage", "Blank"]


def test_labels_and_matches(make_record) -> None:
    sheet = build_review_sheet(_records(make_record))
    assert list(sheet["health_related"]) == [
        HealthLabel.HEALTH_RELATED.value,
        HealthLabel.NOT_HEALTH_RELATED.value,
        HealthLabel.HEALTH_RELATED.value,
        HealthLabel.HEALTH_RELATED.value,
    ]
    assert sheet.loc[0, "matched_rules"] == "health_terms"
    assert sheet.loc[0, "matched_terms"] == "clean water; sanitation"
    assert sheet.loc[1, "matched_rules"] == ""
    assert sheet.loc[2, "matched_terms"] == "forced; marriage"
    assert sheet.loc[3, "matched_rules"] == "sdg_health_goal"


def test_existing_label_kept(make_record) -> None:
    rec = make_record(text="Abolish the death penalty", health=HealthLabel.HEALTH_RELATED)
    sheet = build_review_sheet([rec])
    assert sheet.loc[0, "health_related"] == HealthLabel.HEALTH_RELATED.value


def test_sampling_is_deterministic(make_record) -> None:
    records = _records(make_record) * 5
    first = build_review_sheet(records, sample_size=6, seed=42)
    second = build_review_sheet(records, sample_size=6, seed=42)
    assert len(first) == 6
    pd.testing.assert_frame_equal(first, second)


def test_sample_larger_than_records_keeps_all(make_record) -> None:
    sheet = build_review_sheet(_records(make_record), sample_size=100)
    assert len(sheet) == 4


def test_empty_records() -> None:
    sheet = build_review_sheet([])
    assert sheet.empty
    assert list(sheet.columns) == list(REVIEW_COLUMNS)
