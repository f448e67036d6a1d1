"""
Report orchestration for the UPR Health Monitor.

The ``ReportOrchestrator`` runs one report end to end in a fixed order:

  Step 1 — Classify:   ClassifyStage (load file + label every record).
  Step 2 — Quality:    RecordQualityReport of the labelled records.
  Step 3 — Aggregate:  AggregateStage (every table in REPORT_TABLES).
  Step 4 — Indicators: IndicatorStage (GHO fetch + join), unless disabled.

Failure handling
----------------
There is no partial result. Any stage failure is logged by the stage, the run
record is written with ``status='failed'``, and the exception propagates out
of ``run()``. Re-running on the same input file with the same config
produces identical tables.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from upr_health.analysis.indicator_join import IndicatorTables
from upr_health.analysis.quality import RecordQualityReport, build_quality_report
from upr_health.config import AppConfig
from upr_health.ingestion.gho_client import GhoClient
from upr_health.models.meta import RunMetadata
from upr_health.models.recommendation import Recommendation
from upr_health.pipeline.aggregate import AggregateStage
from upr_health.pipeline.classify import ClassifyStage
from upr_health.pipeline.indicators import IndicatorStage
from upr_health.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


# ── Result type ───────────────────────────────────────────────────────────────

@dataclass
class ReportResult:
    """Complete result of one report run.

    Attributes:
        records:     Labelled recommendations.
        quality:     Data quality summary of ``records``.
        tables:      ``{table_name: DataFrame}`` from the report catalogue.
        indicators:  Joined GHO tables, or None when indicators were skipped.
        stage_runs:  ``RunMetadata`` of every stage, in execution order.
        started_at:  UTC datetime when the run started.
        finished_at: UTC datetime when the run finished.
    """

    records:     list[Recommendation]
    quality:     RecordQualityReport
    tables:      dict[str, pd.DataFrame]
    indicators:  Optional[IndicatorTables] = None
    stage_runs:  list[RunMetadata]         = field(default_factory=list)
    started_at:  Optional[datetime]        = None
    finished_at: Optional[datetime]        = None


# ── Orchestrator ──────────────────────────────────────────────────────────────

class ReportOrchestrator:
    """Coordinates the classify → aggregate → indicators report pipeline.

    Args:
        config:       AppConfig for this run.
        client:       GHO client override (tests inject a mock transport).
        run_log_path: Run-log override (defaults to ``config.data.run_log_file``).
    """

    def __init__(
        self,
        config: AppConfig,
        client: Optional[GhoClient] = None,
        run_log_path: Optional[str] = None,
    ) -> None:
        self.config = config
        self.client = client
        self.run_log_path = run_log_path

    def run(
        self,
        records_path: Optional[str | Path] = None,
        include_indicators: bool = True,
    ) -> ReportResult:
        """Execute the full report pipeline.

        Args:
            records_path:       Input file; defaults to ``config.data.records_path``.
            include_indicators: Whether to fetch and join the GHO indicators.

        Returns:
            ReportResult with every table populated.

        Raises:
            RecordLoadError, httpx.HTTPError, IndicatorPayloadError, ValueError:
                From the first failing stage.
        """
        started_at = utcnow()
        stage_runs: list[RunMetadata] = []

        logger.info("[1/4] ClassifyStage ...")
        classify = ClassifyStage(self.config, run_log_path=self.run_log_path)
        stage_runs.append(classify.run(records_path=records_path))
        records: list[Recommendation] = classify.output

        logger.info("[2/4] Quality summary ...")
        quality = build_quality_report(records)
        if not quality.is_clean:
            logger.warning(
                "%d of %d records have no text and can never be health-related",
                quality.null_text, quality.total_rows,
            )

        logger.info("[3/4] AggregateStage ...")
        aggregate = AggregateStage(self.config, run_log_path=self.run_log_path)
        stage_runs.append(aggregate.run(records=records))

        indicators: Optional[IndicatorTables] = None
        if include_indicators:
            logger.info("[4/4] IndicatorStage ...")
            stage = IndicatorStage(self.config, run_log_path=self.run_log_path)
            stage_runs.append(stage.run(client=self.client))
            indicators = stage.output
        else:
            logger.info("[4/4] IndicatorStage skipped (include_indicators=False).")

        result = ReportResult(
            records=records,
            quality=quality,
            tables=aggregate.output,
            indicators=indicators,
            stage_runs=stage_runs,
            started_at=started_at,
            finished_at=utcnow(),
        )
        logger.info(
            "ReportOrchestrator finished | records=%d | tables=%d | indicators=%s",
            len(records), len(result.tables), "yes" if indicators is not None else "no",
        )
        return result
