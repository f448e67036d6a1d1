"""
ClassifyStage — load the recommendations file and label every record.

Processing steps:
  1. ``load_recommendations()`` with ``config.loader`` (mechanism filter,
     category mapping).
  2. ``classify_records()`` with the rule set named by
     ``config.classifier.ruleset_version``.

``self.output`` holds the labelled ``Recommendation`` list.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from upr_health.analysis.classifier import classify_records
from upr_health.ingestion.records_loader import load_recommendations
from upr_health.models.meta import RunMetadata
from upr_health.pipeline.base import PipelineStage
from upr_health.taxonomy.health_keywords import get_ruleset

logger = logging.getLogger(__name__)


class ClassifyStage(PipelineStage):
    """Load and classify UPR recommendations."""

    stage_name = "classify"

    def _execute(
        self,
        run: RunMetadata,
        records_path: Optional[str | Path] = None,
        **kwargs,
    ) -> int:
        """Load ``records_path`` (default ``config.data.records_path``) and classify it.

        Returns:
            Number of records loaded and labelled.
        """
        path = Path(records_path or self.config.data.records_path)
        run.source_path = str(path)

        records = load_recommendations(path, self.config.loader)
        rules = get_ruleset(self.config.classifier.ruleset_version)
        self.output = classify_records(records, rules)
        return len(self.output)
