"""
Base class for auditable pipeline stages.

A stage is built from an ``AppConfig`` and exposes a single ``run(**kwargs)``.
Each call leaves one ``run_metadata`` row behind:

    started ──> success   (_execute returned a row count)
           └──> failed    (_execute raised; the exception is re-raised)

Subclasses implement ``_execute(run, **kwargs) -> int`` and may call
``_persist_run(run)`` early so a long batch shows up as ``started`` while it
works. An ``org_id`` keyword, when passed, is copied onto the audit row.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from uuid import uuid4

from tire_slingers.config import AppConfig
from tire_slingers.models.meta import RunMetadata
from tire_slingers.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """Template for a stage run with audit bookkeeping.

    Attributes:
        stage_name: Value written to ``RunMetadata.pipeline_stage``.
        config:     Application configuration, snapshotted into every run row.
        db_path:    Database the stage (and its audit rows) use; defaults to
                    ``config.database.db_path``.
    """

    stage_name: str

    def __init__(self, config: AppConfig, db_path: str | None = None) -> None:
        self.config = config
        self.db_path = db_path or config.database.db_path

    def run(self, **kwargs) -> RunMetadata:
        """Execute the stage and record the outcome.

        Returns:
            The finished ``RunMetadata`` (``status`` is ``"success"``).

        Raises:
            Exception: Whatever ``_execute()`` raised, after the run row is
                marked ``failed``.
        """
        run = self._new_run(kwargs.get("org_id"))
        logger.info(
            "[%s] start | org=%s | run_slug=%s",
            self.stage_name, run.org_id or "<stale batch>", run.run_slug,
        )

        try:
            rows = self._execute(run=run, **kwargs)
        except Exception as exc:
            run.mark_failed(str(exc))
            self._persist_run(run)
            logger.error("[%s] failed: %s | run_slug=%s", self.stage_name, exc, run.run_slug)
            raise

        run.mark_success(rows)
        self._persist_run(run)
        logger.info(
            "[%s] done | %d row(s) | run_slug=%s", self.stage_name, rows, run.run_slug
        )
        return run

    @abstractmethod
    def _execute(self, run: RunMetadata, **kwargs) -> int:
        """Do the stage's work and return how many rows it wrote."""

    # ── Audit bookkeeping ─────────────────────────────────────────────────────

    def _new_run(self, org_id: str | None) -> RunMetadata:
        return RunMetadata(
            run_slug=str(uuid4()),
            pipeline_stage=self.stage_name,
            org_id=org_id,
            config_snapshot=self.config.model_dump(),
            started_at=utcnow(),
        )

    def _persist_run(self, run: RunMetadata) -> None:
        """Insert the run row on first call, update it afterwards.

        A failure here is logged and swallowed: losing an audit row must not
        replace the stage's own result or exception.
        """
        from tire_slingers.db.connection import db_session
        from tire_slingers.db.repositories.run_repo import RunMetadataRepository

        try:
            with db_session(self.config.database, self.db_path) as conn:
                repo = RunMetadataRepository(conn)
                if run.run_id is None:
                    run.run_id = repo.insert_run(run)
                else:
                    repo.update_run(run)
        except Exception as exc:
            logger.error("Could not persist run_slug=%s: %s", run.run_slug, exc)
