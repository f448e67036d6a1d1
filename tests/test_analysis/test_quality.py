"""Tests for build_quality_report()."""

from __future__ import annotations

from datetime import date

import pytest

from upr_health.analysis.quality import build_quality_report
from upr_health.models.recommendation import Recommendation
from upr_health.taxonomy.categories import HealthLabel, SdgLink


def test_empty_records() -> None:
    report = build_quality_report([])
    assert report.total_rows == 0
    assert report.is_clean
    assert report.cycles == []


def test_counts(labelled_records) -> None:
    report = build_quality_report(labelled_records)
    assert report.total_rows == 5
    assert report.null_text == 0
    assert report.null_response == 1
    assert report.distinct_states == 3
    assert report.cycles == [1, 2]
    assert report.classified_rows == 5
    assert report.health_related_pct == pytest.approx(60.0)
    assert report.sdg_linked_pct == pytest.approx(40.0)
    assert report.is_clean


def test_null_text_marks_unclean(make_record) -> None:
    report = build_quality_report([make_record(text=None), make_record()])
    assert report.null_text == 1
    assert not report.is_clean


def test_duplicate_citations(make_record) -> None:
    records = [
        make_record(document_code="A/HRC/1", paragraph="1 | A"),
        make_record(document_code="A/HRC/1", paragraph="1 | A"),
        make_record(document_code="A/HRC/1", paragraph="2 | B"),
        make_record(document_code=None, paragraph="1 | A"),
    ]
    assert build_quality_report(records).duplicate_citations == 1


def test_year_range() -> None:
    records = [
        Recommendation(sdg_linked=SdgLink.LINKED, year=date(2017, 1, 1)),
        Recommendation(sdg_linked=SdgLink.LINKED, year=date(2012, 1, 1)),
        Recommendation(sdg_linked=SdgLink.LINKED),
    ]
    report = build_quality_report(records)
    assert report.year_range_start == date(2012, 1, 1)
    assert report.year_range_end == date(2017, 1, 1)
    assert report.null_cycle == 3


def test_unclassified_records_have_no_health_share(make_record) -> None:
    report = build_quality_report([make_record()])
    assert report.classified_rows == 0
    assert report.health_related_pct == 0.0


def test_health_share_over_classified_only(make_record) -> None:
    records = [
        make_record(health=HealthLabel.HEALTH_RELATED),
        make_record(health=None),
    ]
    assert build_quality_report(records).health_related_pct == pytest.approx(100.0)
