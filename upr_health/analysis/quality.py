"""
Data quality summary for a loaded (and optionally classified) record list.

``build_quality_report()`` works on plain ``Recommendation`` objects, so it can
run straight after loading and is easy to unit-test with a handful of records.

``is_clean`` is False only when some record has no text: such records can
never be labelled health-related, which biases every share table. Missing
responses are normal (the response tables filter them out) and do not mark
the dataset as unclean.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from upr_health.models.recommendation import Recommendation
from upr_health.taxonomy.categories import HealthLabel, SdgLink


@dataclass
class RecordQualityReport:
    """Summary of record-level data quality.

    Attributes:
        total_rows:          Records inspected.
        null_text:           Records with no text.
        null_response:       Records with no ``response_upr``.
        null_cycle:          Records with no cycle.
        duplicate_citations: Records whose (document_code, paragraph) pair was
                             already seen (both fields non-null).
        distinct_states:     Distinct ``state_under_review`` values.
        cycles:              Sorted cycles present.
        year_range_start:    Earliest review year, or None.
        year_range_end:      Latest review year, or None.
        classified_rows:     Records carrying a health label.
        health_related_pct:  Health-related share of classified records (0–100).
        sdg_linked_pct:      SDG-linked share of all records (0–100).
        is_clean:            False if any record has no text.
    """

    total_rows: int
    null_text: int
    null_response: int
    null_cycle: int
    duplicate_citations: int
    distinct_states: int
    cycles: list[int] = field(default_factory=list)
    year_range_start: date | None = None
    year_range_end: date | None = None
    classified_rows: int = 0
    health_related_pct: float = 0.0
    sdg_linked_pct: float = 0.0
    is_clean: bool = True


def build_quality_report(records: Sequence[Recommendation]) -> RecordQualityReport:
    """Build a ``RecordQualityReport`` for ``records``."""
    n = len(records)
    if n == 0:
        return RecordQualityReport(
            total_rows=0,
            null_text=0,
            null_response=0,
            null_cycle=0,
            duplicate_citations=0,
            distinct_states=0,
        )

    null_text = sum(1 for r in records if r.text is None)

    seen: set[tuple[str, str]] = set()
    duplicates = 0
    for r in records:
        if r.document_code is None or r.paragraph is None:
            continue
        key = (r.document_code, r.paragraph)
        if key in seen:
            duplicates += 1
        seen.add(key)

    years = [r.year for r in records if r.year is not None]
    classified = [r for r in records if r.health_related is not None]
    n_health = sum(1 for r in classified if r.health_related is HealthLabel.HEALTH_RELATED)
    n_linked = sum(1 for r in records if r.sdg_linked is SdgLink.LINKED)

    return RecordQualityReport(
        total_rows=n,
        null_text=null_text,
        null_response=sum(1 for r in records if r.response_upr is None),
        null_cycle=sum(1 for r in records if r.cycle is None),
        duplicate_citations=duplicates,
        distinct_states=len({r.state_under_review for r in records if r.state_under_review}),
        cycles=sorted({r.cycle for r in records if r.cycle is not None}),
        year_range_start=min(years) if years else None,
        year_range_end=max(years) if years else None,
        classified_rows=len(classified),
        health_related_pct=100.0 * n_health / len(classified) if classified else 0.0,
        sdg_linked_pct=100.0 * n_linked / n,
        is_clean=null_text == 0,
    )
