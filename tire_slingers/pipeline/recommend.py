"""
RecommendStage: refresh stored stock recommendations.

Modes
-----
  org_id given : refresh that one organization; any error fails the run.
  org_id None  : refresh every organization flagged stale, one after another.
                 A failure for one organization is logged and recorded in
                 ``results``; the batch moves on to the next.

Each organization gets its own connection, so a failure in one never rolls
back another's write.

Returns total StockRecommendation rows written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from tire_slingers.config import AppConfig
from tire_slingers.models.meta import RunMetadata
from tire_slingers.pipeline.base import PipelineStage
from tire_slingers.utils.logging import run_logger

logger = logging.getLogger(__name__)


@dataclass
class OrgRefreshResult:
    """Outcome of refreshing one organization inside a stage run.

    Attributes:
        org_id:              Organization refreshed.
        status:              ``"success"`` or ``"failed"``.
        recommendations:     Rows written (0 on failure).
        total_current_stock: Units on hand at compute time.
        capacity_used:       Projected units after granted restocks.
        error:               Error text when ``status == "failed"``.
    """

    org_id:              str
    status:              str
    recommendations:     int = 0
    total_current_stock: int = 0
    capacity_used:       int = 0
    error:               Optional[str] = None


class RecommendStage(PipelineStage):
    """Recompute and store recommendations for one or all stale organizations."""

    stage_name = "recommend"

    def __init__(self, config: AppConfig, db_path: str | None = None) -> None:
        super().__init__(config, db_path)
        self.results: list[OrgRefreshResult] = []

    def _execute(
        self,
        run: RunMetadata,
        org_id: str | None = None,
        now: datetime | None = None,
        **kwargs,
    ) -> int:
        """Refresh recommendations.

        Args:
            run:    In-progress RunMetadata (mutable).
            org_id: Single organization to refresh. If None, every stale one.
            now:    Reference time for ages and windows (defaults to now).

        Returns:
            Total StockRecommendation rows written.
        """
        from tire_slingers.db.connection import db_session
        from tire_slingers.recommendations.engine import list_stale_organizations

        self.results = []
        self._persist_run(run)

        if org_id is not None:
            result = self._refresh_one(run, org_id, now)
            self.results.append(result)
            return result.recommendations

        with db_session(self.config.database, self.db_path) as conn:
            stale_ids = [org.org_id for org in list_stale_organizations(conn)]

        if not stale_ids:
            logger.info("No organizations flagged stale; nothing to refresh.")
            return 0

        logger.info("Refreshing %d stale organization(s).", len(stale_ids))

        for stale_id in stale_ids:
            try:
                result = self._refresh_one(run, stale_id, now)
            except Exception as exc:
                run_logger(logger, run, stale_id).exception("Refresh failed; continuing batch.")
                result = OrgRefreshResult(org_id=stale_id, status="failed", error=str(exc))
            self.results.append(result)

        failed = [r.org_id for r in self.results if r.status == "failed"]
        if failed:
            run.error_message = f"{len(failed)} organization(s) failed: {', '.join(failed)}"

        total = sum(r.recommendations for r in self.results)
        logger.info(
            "RecommendStage complete: %d recommendation(s) across %d organization(s), %d failed.",
            total, len(stale_ids), len(failed),
        )
        return total

    def _refresh_one(
        self, run: RunMetadata, org_id: str, now: datetime | None
    ) -> OrgRefreshResult:
        from tire_slingers.db.connection import db_session
        from tire_slingers.recommendations.engine import refresh_recommendations

        with db_session(self.config.database, self.db_path) as conn:
            computed = refresh_recommendations(
                conn,
                org_id,
                now=now,
                default_capacity=self.config.engine.default_capacity_total_tires,
            )

        run_logger(logger, run, org_id).info(
            "Refreshed %d recommendation(s) | capacity used %d/%d",
            len(computed.recommendations), computed.capacity_used, computed.capacity,
        )

        return OrgRefreshResult(
            org_id=org_id,
            status="success",
            recommendations=len(computed.recommendations),
            total_current_stock=computed.total_current_stock,
            capacity_used=computed.capacity_used,
        )
