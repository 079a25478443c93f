"""Tests for InventorySettings, StockRecommendation and RunMetadata models."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from tire_slingers.models.meta import RunMetadata
from tire_slingers.models.settings import DEFAULT_INVENTORY_SETTINGS, InventorySettings


class TestInventorySettings:
    def test_documented_defaults(self):
        s = DEFAULT_INVENTORY_SETTINGS
        assert s.sales_window_days == 90
        assert s.search_window_days == 90
        assert s.min_search_threshold == 3
        assert s.stale_age_days == 1800
        assert s.overstock_percent == 50
        assert s.safety_multiplier == pytest.approx(2.0)
        assert s.packaging_set_size == 4
        assert s.enable_search_demand is True
        assert s.enable_request_demand is True
        assert s.org_id is None

    def test_defaults_are_immutable(self):
        with pytest.raises(ValidationError):
            DEFAULT_INVENTORY_SETTINGS.stale_age_days = 10  # type: ignore[misc]

    @pytest.mark.parametrize("field", ["sales_window_days", "search_window_days", "packaging_set_size"])
    def test_zero_window_raises(self, field):
        with pytest.raises(ValidationError, match=">= 1"):
            InventorySettings(**{field: 0})

    def test_negative_threshold_raises(self):
        with pytest.raises(ValidationError, match="non-negative"):
            InventorySettings(min_search_threshold=-1)

    def test_zero_multiplier_raises(self):
        with pytest.raises(ValidationError, match="safety_multiplier"):
            InventorySettings(safety_multiplier=0)


class TestStockRecommendation:
    def test_mutable_for_allocator(self, sample_recommendation):
        sample_recommendation.need_units = 2
        sample_recommendation.reasons.append("Limited by capacity (2 slots available)")
        assert sample_recommendation.need_units == 2
        assert len(sample_recommendation.reasons) == 3

    def test_priority_rank_and_demand_score(self, sample_recommendation):
        assert sample_recommendation.priority_rank == 0
        assert sample_recommendation.demand_score == 6

    def test_invalid_action_raises(self, sample_recommendation):
        data = sample_recommendation.model_dump()
        data["action"] = "sell"
        with pytest.raises(ValidationError):
            type(sample_recommendation)(**data)

    def test_null_flag_allowed(self, sample_recommendation):
        data = sample_recommendation.model_dump()
        data["flag"] = None
        assert type(sample_recommendation)(**data).flag is None


class TestRunMetadata:
    def _run(self, **overrides) -> RunMetadata:
        fields = dict(
            run_slug="abc",
            pipeline_stage="recommend",
            config_snapshot={},
            started_at=datetime(2025, 6, 1, tzinfo=timezone.utc),
        )
        fields.update(overrides)
        return RunMetadata(**fields)

    def test_defaults(self):
        run = self._run()
        assert run.status == "started"
        assert run.org_id is None
        assert run.rows_processed == 0

    def test_unknown_stage_raises(self):
        with pytest.raises(ValidationError, match="pipeline_stage"):
            self._run(pipeline_stage="train")

    def test_unknown_status_raises(self):
        with pytest.raises(ValidationError, match="status"):
            self._run(status="exploded")

    def test_mark_success(self):
        run = self._run()
        run.mark_success(12)
        assert run.status == "success"
        assert run.rows_processed == 12
        assert run.duration_seconds is not None and run.duration_seconds >= 0

    def test_mark_failed(self):
        run = self._run()
        run.mark_failed("boom")
        assert run.status == "failed"
        assert run.error_message == "boom"
        assert run.finished_at is not None

    def test_duration_none_while_running(self):
        assert self._run().duration_seconds is None

    def test_assignment_is_validated(self):
        run = self._run()
        with pytest.raises(ValidationError):
            run.status = "paused"
