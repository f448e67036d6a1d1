"""
AggregateStage — build every report table from labelled recommendations.

``self.output`` is ``{table_name: DataFrame}`` in ``REPORT_TABLES`` order.
The row count reported for the run is the total number of table rows.
"""

from __future__ import annotations

import logging
from typing import Sequence

from upr_health.analysis.reports import build_report_tables
from upr_health.models.meta import RunMetadata
from upr_health.models.recommendation import Recommendation
from upr_health.pipeline.base import PipelineStage

logger = logging.getLogger(__name__)


class AggregateStage(PipelineStage):
    """Aggregate labelled records into the report share tables."""

    stage_name = "aggregate"

    def _execute(
        self,
        run: RunMetadata,
        records: Sequence[Recommendation],
        **kwargs,
    ) -> int:
        if not records:
            logger.warning("No labelled records; every report table is empty.")

        self.output = build_report_tables(
            records, excluded_responses=self.config.report.excluded_responses
        )
        for name, table in self.output.items():
            logger.debug("Table %s: %d rows", name, len(table))
        return sum(len(t) for t in self.output.values())
