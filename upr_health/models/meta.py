"""
Run metadata — the audit record of one pipeline stage execution.

Every stage run records a complete ``config_snapshot`` (full ``AppConfig`` as
a dict) and the rule-set version, so a report can be reproduced by restoring
that config and re-running on the same input file.

``RunMetadata`` is the only model in the system that is NOT frozen: its
``status``, ``rows_processed``, ``error_message`` and ``finished_at`` fields
are updated as the stage executes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

VALID_PIPELINE_STAGES = frozenset({"classify", "aggregate", "indicators"})
VALID_RUN_STATUSES = frozenset({"started", "success", "failed"})


class RunMetadata(BaseModel):
    """Pipeline execution audit record.

    Attributes:
        run_slug:        UUID4 string uniquely identifying this run.
        pipeline_stage:  Which stage produced this record.
        status:          Current execution status.
        source_path:     Input file read by the stage, if any.
        ruleset_version: Keyword rule set applied, if the stage classifies.
        config_snapshot: ``AppConfig.model_dump()`` at run start.
        rows_processed:  Records (or table rows) produced by the stage.
        error_message:   Error description if ``status == "failed"``.
        started_at:      UTC datetime when the run began.
        finished_at:     UTC datetime when the run completed or failed.
    """

    model_config = ConfigDict(frozen=False)

    run_slug: str
    pipeline_stage: str
    status: str = "started"
    source_path: Optional[str] = None
    ruleset_version: Optional[str] = None
    config_snapshot: dict[str, Any]
    rows_processed: int = 0
    error_message: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None

    @field_validator("pipeline_stage")
    @classmethod
    def validate_pipeline_stage(cls, v: str) -> str:
        if v not in VALID_PIPELINE_STAGES:
            raise ValueError(
                f"Unknown pipeline_stage '{v}'. Must be one of {sorted(VALID_PIPELINE_STAGES)}."
            )
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in VALID_RUN_STATUSES:
            raise ValueError(
                f"Unknown status '{v}'. Must be one of {sorted(VALID_RUN_STATUSES)}."
            )
        return v

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()
