"""Tests for the pipeline stage abstract base."""

from __future__ import annotations

import pytest

from tire_slingers.config import AppConfig, DatabaseConfig
from tire_slingers.db.connection import get_connection
from tire_slingers.db.repositories.run_repo import RunMetadataRepository
from tire_slingers.pipeline.base import PipelineStage
from tire_slingers.pipeline.recommend import RecommendStage


class TestPipelineStageABC:
    def test_cannot_instantiate_base_directly(self):
        """PipelineStage is abstract and cannot be instantiated without _execute."""
        with pytest.raises(TypeError):
            PipelineStage(config=None)  # type: ignore

    def test_concrete_subclass_without_execute_raises(self):
        class IncompleteStage(PipelineStage):
            stage_name = "recommend"

        with pytest.raises(TypeError):
            IncompleteStage(config=None)  # type: ignore

    def test_recommend_stage_name(self):
        assert RecommendStage.stage_name == "recommend"


class TestRunRecording:
    @pytest.fixture
    def config(self, file_db):
        return AppConfig(database=DatabaseConfig(db_path=file_db, wal_mode=False))

    def test_success_is_recorded(self, config, file_db):
        class CountingStage(PipelineStage):
            stage_name = "recommend"

            def _execute(self, run, **kwargs) -> int:
                return 7

        run = CountingStage(config=config).run(org_id="yard-1")
        assert run.status == "success"
        assert run.rows_processed == 7
        assert run.finished_at is not None

        with get_connection(file_db) as conn:
            stored = RunMetadataRepository(conn).get_run_by_slug(run.run_slug)
        assert stored.status == "success"
        assert stored.org_id == "yard-1"
        assert stored.config_snapshot["database"]["db_path"] == file_db

    def test_failure_is_recorded_and_reraised(self, config, file_db):
        class BrokenStage(PipelineStage):
            stage_name = "recommend"

            def _execute(self, run, **kwargs) -> int:
                raise RuntimeError("engine exploded")

        stage = BrokenStage(config=config)
        with pytest.raises(RuntimeError, match="engine exploded"):
            stage.run()

        with get_connection(file_db) as conn:
            (stored,) = RunMetadataRepository(conn).get_recent_runs()
        assert stored.status == "failed"
        assert stored.error_message == "engine exploded"
        assert stored.org_id is None

    def test_unwritable_db_does_not_mask_result(self, tmp_path):
        class CountingStage(PipelineStage):
            stage_name = "recommend"

            def _execute(self, run, **kwargs) -> int:
                return 1

        # No schema: persisting the run fails and is only logged.
        config = AppConfig(database=DatabaseConfig(db_path=str(tmp_path / "empty.db")))
        run = CountingStage(config=config).run()
        assert run.status == "success"
