"""
Audit record for recommendation runs.

One ``RunMetadata`` row per ``PipelineStage.run()``: the stage, the yard it
refreshed (``None`` for the stale-organization batch), how many
recommendation rows it wrote, and a full ``AppConfig`` snapshot. The model is
mutable because the stage fills in the outcome as it goes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from tire_slingers.utils.time_utils import utcnow

VALID_PIPELINE_STAGES = frozenset({"recommend"})
VALID_RUN_STATUSES = frozenset({"started", "success", "failed"})


class RunMetadata(BaseModel):
    """One stage execution.

    Attributes:
        run_id:          DB PK; ``None`` until first persisted.
        run_slug:        UUID4 string for log correlation.
        pipeline_stage:  Stage name, see ``VALID_PIPELINE_STAGES``.
        status:          ``started`` -> ``success`` | ``failed``.
        org_id:          Yard refreshed, or ``None`` for a batch.
        config_snapshot: ``AppConfig.model_dump()`` at start.
        rows_processed:  Recommendation rows written.
        error_message:   Failure text; a successful batch may also carry the
                         list of yards that failed inside it.
        started_at:      UTC start.
        finished_at:     UTC end, ``None`` while running.
    """

    model_config = ConfigDict(validate_assignment=True)

    run_id:          Optional[int] = None
    run_slug:        str
    pipeline_stage:  str
    status:          str = "started"
    org_id:          Optional[str] = None
    config_snapshot: dict[str, Any]
    rows_processed:  int = 0
    error_message:   Optional[str] = None
    started_at:      datetime
    finished_at:     Optional[datetime] = None

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
            raise ValueError(f"Unknown status '{v}'. Must be one of {sorted(VALID_RUN_STATUSES)}.")
        return v

    def mark_success(self, rows: int) -> None:
        self.status = "success"
        self.rows_processed = rows
        self.finished_at = utcnow()

    def mark_failed(self, error: str) -> None:
        self.status = "failed"
        self.error_message = error
        self.finished_at = utcnow()

    @property
    def duration_seconds(self) -> Optional[float]:
        """Wall time of a finished run."""
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()
