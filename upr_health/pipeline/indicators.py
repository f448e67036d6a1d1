"""
IndicatorStage — fetch WHO GHO series and join them against reference tables.

Processing steps:
  1. Fetch the GHO, COUNTRY and REGION reference dimensions.
  2. Fetch every configured indicator code (sequentially, or concurrently when
     ``config.indicators.concurrent`` is set).
  3. Join and concatenate them into ``IndicatorTables.combined``.
  4. Fetch and join the maternal mortality ratio on its own into
     ``IndicatorTables.maternal_mortality``.

Any fetch failure aborts the stage; no partial tables are produced.
"""

from __future__ import annotations

import logging
from typing import Optional

from upr_health.analysis.indicator_join import (
    IndicatorTables,
    combine_indicator_series,
    join_indicator_series,
    load_reference_tables,
)
from upr_health.ingestion.gho_client import GhoClient
from upr_health.models.meta import RunMetadata
from upr_health.pipeline.base import PipelineStage

logger = logging.getLogger(__name__)


class IndicatorStage(PipelineStage):
    """Fetch and join the external health indicator series."""

    stage_name = "indicators"

    def _execute(
        self,
        run: RunMetadata,
        client: Optional[GhoClient] = None,
        **kwargs,
    ) -> int:
        """Fetch, join and store ``IndicatorTables`` on ``self.output``.

        Args:
            run:    In-progress run record.
            client: GHO client to use; built from ``config.indicators`` if omitted.

        Returns:
            Total rows across both joined tables.
        """
        cfg = self.config.indicators
        client = client or GhoClient(base_url=cfg.base_url, timeout=cfg.timeout_s)
        run.source_path = client.base_url

        refs = load_reference_tables(client)
        series = client.fetch_many(
            cfg.indicator_codes,
            concurrent=cfg.concurrent,
            max_concurrency=cfg.max_concurrency,
        )
        combined = combine_indicator_series(series, refs, cfg.global_region_label)

        mmr = join_indicator_series(
            client.get_indicator_data(cfg.maternal_mortality_code),
            refs,
            cfg.global_region_label,
        )

        self.output = IndicatorTables(combined=combined, maternal_mortality=mmr)
        logger.info(
            "Indicator tables: combined=%d rows (%d series), maternal_mortality=%d rows",
            len(combined), len(series), len(mmr),
        )
        return len(combined) + len(mmr)
