"""
Per-organization inventory tuning settings.

``InventorySettings`` is read from the ``inventory_settings`` table. When an
organization has no row, the engine uses ``DEFAULT_INVENTORY_SETTINGS``,
an explicit frozen instance passed through the engine, never looked up as
ambient state.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class InventorySettings(BaseModel):
    """Demand windows, thresholds and multipliers for one organization.

    Attributes:
        org_id: Owning organization, or ``None`` for the shared default record.
        sales_window_days: Trailing window for counting sold units.
        search_window_days: Trailing window for failed searches and
            customer requests.
        min_search_threshold: Failed-search counts below this are noise.
        stale_age_days: Inventory older than this is flagged stale.
        overstock_percent: Stock above ``target * (1 + pct/100)`` is overstock.
        safety_multiplier: Multiplier applied to peak monthly demand.
        packaging_set_size: Units in a typical customer set (informational).
        enable_search_demand: Whether failed searches count as demand.
        enable_request_demand: Whether customer requests count as demand.
    """

    model_config = ConfigDict(frozen=True)

    org_id: Optional[str] = None
    sales_window_days: int = 90
    search_window_days: int = 90
    min_search_threshold: int = 3
    stale_age_days: int = 1800
    overstock_percent: float = 50
    safety_multiplier: float = 2.0
    packaging_set_size: int = 4
    enable_search_demand: bool = True
    enable_request_demand: bool = True

    @field_validator("sales_window_days", "search_window_days", "packaging_set_size")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Value must be >= 1, got {v}.")
        return v

    @field_validator("min_search_threshold", "stale_age_days", "overstock_percent")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Value must be non-negative, got {v}.")
        return v

    @field_validator("safety_multiplier")
    @classmethod
    def validate_multiplier(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"safety_multiplier must be positive, got {v}.")
        return v


DEFAULT_INVENTORY_SETTINGS = InventorySettings()
