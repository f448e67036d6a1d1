"""
Catalogue of the report tables built from labelled recommendations.

Each ``ReportTableSpec`` names one ``share_table()`` call. The two response
tables drop records without a response first; the "informative" variant also
drops the configured non-informative responses (``Supported/Noted`` by
default).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

import pandas as pd

from upr_health.analysis.aggregate import records_to_frame, share_table
from upr_health.models.recommendation import Recommendation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportTableSpec:
    """Definition of one aggregated report table.

    Attributes:
        name:                 Table key in the report dict and export file stem.
        title:                Human-readable caption.
        dims:                 Grouping dimensions (last one is the category).
        require_response:     Drop records whose ``response_upr`` is null.
        drop_excluded_responses: Also drop the configured excluded responses.
    """

    name: str
    title: str
    dims: tuple[str, ...]
    require_response: bool = False
    drop_excluded_responses: bool = False


REPORT_TABLES: tuple[ReportTableSpec, ...] = (
    ReportTableSpec(
        "recommendations_by_cycle", "Recommendations per UPR cycle", ("cycle",)
    ),
    ReportTableSpec(
        "health_by_cycle", "Health-related share per cycle", ("cycle", "health_related")
    ),
    ReportTableSpec(
        "sdg_by_cycle", "SDG-linked share per cycle", ("cycle", "sdg_linked")
    ),
    ReportTableSpec(
        "health_by_sdg_link",
        "Health-related share by SDG linkage",
        ("sdg_linked", "health_related"),
    ),
    ReportTableSpec(
        "response_by_health",
        "State responses by health label",
        ("health_related", "response_upr"),
        require_response=True,
    ),
    ReportTableSpec(
        "response_by_health_informative",
        "State responses by health label (informative responses only)",
        ("health_related", "response_upr"),
        require_response=True,
        drop_excluded_responses=True,
    ),
    ReportTableSpec(
        "health_by_state",
        "Health-related share per state under review",
        ("state_under_review", "health_related"),
    ),
)


def build_table(
    frame: pd.DataFrame,
    spec: ReportTableSpec,
    excluded_responses: Sequence[str] = ("Supported/Noted",),
) -> pd.DataFrame:
    """Build one report table from the record frame."""
    exclude_null = ("response_upr",) if spec.require_response else ()
    exclude_values = (
        {"response_upr": list(excluded_responses)}
        if spec.drop_excluded_responses
        else None
    )
    return share_table(
        frame,
        spec.dims,
        exclude_null=exclude_null,
        exclude_values=exclude_values,
    )


def build_report_tables(
    records: Iterable[Recommendation],
    excluded_responses: Sequence[str] = ("Supported/Noted",),
    specs: Sequence[ReportTableSpec] = REPORT_TABLES,
) -> dict[str, pd.DataFrame]:
    """Build every table in ``specs`` from labelled records.

    Raises:
        ValueError: If any record has not been classified yet.
    """
    records = list(records)
    unlabelled = sum(1 for r in records if not r.is_classified)
    if unlabelled:
        raise ValueError(
            f"{unlabelled} record(s) have no health label; run classify_records() first."
        )

    frame = records_to_frame(records)
    tables = {spec.name: build_table(frame, spec, excluded_responses) for spec in specs}
    logger.info(
        "Built %d report tables from %d records", len(tables), len(records)
    )
    return tables
