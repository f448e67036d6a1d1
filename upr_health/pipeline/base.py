"""
Abstract base class for all pipeline stages.

Every stage follows the same contract:
  1. Receive ``AppConfig`` at construction.
  2. ``run(**kwargs)`` is the sole public API.
  3. ``run()`` creates a ``RunMetadata`` record, calls ``_execute()``,
     and persists the run record with final status.
  4. ``_execute()`` is the stage-specific implementation (overridden by subclasses)
     and leaves its product on ``self.output``.

Run records are appended as JSON lines to ``config.data.run_log_file`` when
that setting is non-empty; otherwise they are only logged.

Usage::

    class MyStage(PipelineStage):
        stage_name = "classify"

        def _execute(self, run: RunMetadata, **kwargs) -> int:
            self.output = [...]
            return len(self.output)

    stage = MyStage(config=app_config)
    run = stage.run(records_path="data/raw/upr_recommendations.parquet")
    records = stage.output
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional
from uuid import uuid4

from upr_health.config import AppConfig
from upr_health.models.meta import RunMetadata
from upr_health.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """Abstract base for all pipeline stages.

    Subclasses must:
      1. Set ``stage_name`` class variable.
      2. Implement ``_execute(run, **kwargs) -> int``.

    Attributes:
        stage_name:   String identifier matching a valid ``RunMetadata.pipeline_stage``.
        config:       The application configuration for this run.
        run_log_path: JSON-lines file receiving run records, or ``None``.
        output:       Product of the last successful ``run()`` (``None`` before).
    """

    stage_name: str  # Override in subclass

    def __init__(
        self,
        config: AppConfig,
        run_log_path: Optional[str] = None,
    ) -> None:
        self.config = config
        path = run_log_path if run_log_path is not None else config.data.run_log_file
        self.run_log_path = Path(path) if path else None
        self.output: Any = None

    def run(self, **kwargs) -> RunMetadata:
        """Execute this pipeline stage.

        Args:
            **kwargs: Stage-specific keyword arguments passed to ``_execute()``.

        Returns:
            ``RunMetadata`` with ``status='success'``, ``rows_processed``
            and ``finished_at`` set.

        Raises:
            Exception: Re-raises any exception from ``_execute()`` after
                recording ``status='failed'`` in the run record.
        """
        run = RunMetadata(
            run_slug=str(uuid4()),
            pipeline_stage=self.stage_name,
            ruleset_version=self.config.classifier.ruleset_version,
            config_snapshot=self.config.model_dump(),
            started_at=utcnow(),
        )
        logger.info(
            "Stage [%s] starting | run_slug=%s", self.stage_name, run.run_slug
        )

        try:
            rows = self._execute(run=run, **kwargs)
            run.status = "success"
            run.rows_processed = rows
            run.finished_at = utcnow()
            logger.info(
                "Stage [%s] completed | rows=%d | %.2fs | run_slug=%s",
                self.stage_name, rows, run.duration_seconds, run.run_slug,
            )

        except Exception as exc:
            run.status = "failed"
            run.error_message = str(exc)
            run.finished_at = utcnow()
            logger.error(
                "Stage [%s] FAILED: %s | run_slug=%s",
                self.stage_name, exc, run.run_slug,
            )
            self._persist_run(run)
            raise

        self._persist_run(run)
        return run

    @abstractmethod
    def _execute(self, run: RunMetadata, **kwargs) -> int:
        """Stage-specific implementation.

        Args:
            run: The in-progress ``RunMetadata`` record (mutable).
            **kwargs: Stage-specific parameters.

        Returns:
            Integer count of records or table rows produced.
        """
        ...

    def _persist_run(self, run: RunMetadata) -> None:
        """Append the ``RunMetadata`` record to the run log file.

        Logs errors rather than raising: a run-log failure must not mask the
        original pipeline error.
        """
        if self.run_log_path is None:
            return
        try:
            self.run_log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.run_log_path, "a", encoding="utf-8") as f:
                f.write(run.model_dump_json() + "\n")
        except OSError as exc:
            logger.error(
                "Failed to persist RunMetadata for run_slug=%s: %s",
                run.run_slug, exc,
            )
