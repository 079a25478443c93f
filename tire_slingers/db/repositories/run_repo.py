"""
Repository for pipeline run metadata.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Optional

from tire_slingers.db.repositories.base import BaseRepository
from tire_slingers.models.meta import RunMetadata
from tire_slingers.utils.time_utils import format_db_timestamp, parse_db_timestamp

logger = logging.getLogger(__name__)


class RunMetadataRepository(BaseRepository):
    """Read/write access to ``run_metadata``."""

    def insert_run(self, run: RunMetadata) -> int:
        """Insert a new run metadata record and return its ``run_id``."""
        return self.insert_row(
            """
            INSERT INTO run_metadata (
                run_slug, pipeline_stage, status, org_id, config_snapshot,
                rows_processed, error_message, started_at, finished_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                run.run_slug,
                run.pipeline_stage,
                run.status,
                run.org_id,
                json.dumps(run.config_snapshot, default=str),
                run.rows_processed,
                run.error_message,
                format_db_timestamp(run.started_at),
                format_db_timestamp(run.finished_at) if run.finished_at else None,
            ),
        )

    def update_run(self, run: RunMetadata) -> None:
        """Update the mutable fields of an existing run record.

        Raises:
            ValueError: If ``run.run_id`` is ``None``.
        """
        if run.run_id is None:
            raise ValueError("Cannot update RunMetadata without a run_id.")
        self.execute(
            """
            UPDATE run_metadata SET
                status         = ?,
                rows_processed = ?,
                error_message  = ?,
                finished_at    = ?
            WHERE run_id = ?;
            """,
            (
                run.status,
                run.rows_processed,
                run.error_message,
                format_db_timestamp(run.finished_at) if run.finished_at else None,
                run.run_id,
            ),
        )

    def get_run_by_slug(self, run_slug: str) -> Optional[RunMetadata]:
        """Fetch a run by its UUID slug, or ``None``."""
        row = self.fetchone(
            "SELECT * FROM run_metadata WHERE run_slug = ?;", (run_slug,)
        )
        return _row_to_run(row) if row else None

    def get_recent_runs(self, limit: int = 20) -> list[RunMetadata]:
        """Fetch recent run records, most recent first."""
        rows = self.fetchall(
            "SELECT * FROM run_metadata ORDER BY started_at DESC, run_id DESC LIMIT ?;",
            (limit,),
        )
        return [_row_to_run(r) for r in rows]


def _row_to_run(row: sqlite3.Row) -> RunMetadata:
    return RunMetadata(
        run_id=row["run_id"],
        run_slug=row["run_slug"],
        pipeline_stage=row["pipeline_stage"],
        status=row["status"],
        org_id=row["org_id"],
        config_snapshot=json.loads(row["config_snapshot"]),
        rows_processed=row["rows_processed"],
        error_message=row["error_message"],
        started_at=parse_db_timestamp(row["started_at"]),
        finished_at=(
            parse_db_timestamp(row["finished_at"]) if row["finished_at"] else None
        ),
    )
