"""
Stock recommendation output model.

``StockRecommendation`` is the engine's per-size verdict for one
organization: how much is on hand, how much should be, and whether to stock
more, purge, or hold.

Unlike the other domain models this one is NOT frozen: the capacity
allocator runs after classification and adjusts ``need_units``, ``action``
and ``reasons`` in place.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

StockAction = Literal["stock", "purge", "hold"]
StockPriority = Literal["high", "medium", "low"]
StockFlag = Literal["normal", "overstock", "stale"]

# Sort rank used by the allocator and by stored-recommendation reads.
PRIORITY_RANK: dict[str, int] = {"high": 0, "medium": 1, "low": 2}


class StockRecommendation(BaseModel):
    """Recommended stocking action for one size at one organization.

    Attributes:
        rec_id: Auto-assigned DB PK; ``None`` before insertion.
        org_id: Owning organization.
        size_key: Normalized size key.
        size_display: Human-readable size (``"205/55R16"``).
        current_stock: Units on hand.
        target_stock: Demand-derived target.
        need_units: Signed gap; positive = stock more, negative = reduce.
        action: ``"stock"``, ``"purge"`` or ``"hold"``.
        priority: ``"high"``, ``"medium"`` or ``"low"``.
        flag: ``"normal"``, ``"overstock"``, ``"stale"`` or ``None``.
        sales_90d: Raw sold-unit count over the sales window.
        searches_90d: Raw failed-search count over the search window.
        requests_90d: Raw open-request count over the search window.
        avg_age_days: Mean unit age, ``None`` when nothing is in stock.
        oldest_age_days: Oldest unit age, ``None`` when nothing is in stock.
        reasons: Ordered explanation strings.
        computed_at: Stamped by the persistence step.
    """

    model_config = ConfigDict(frozen=False)

    rec_id: Optional[int] = None
    org_id: str
    size_key: str
    size_display: str
    current_stock: int
    target_stock: int
    need_units: int
    action: StockAction = "hold"
    priority: StockPriority = "low"
    flag: Optional[StockFlag] = "normal"
    sales_90d: int = 0
    searches_90d: int = 0
    requests_90d: int = 0
    avg_age_days: Optional[int] = None
    oldest_age_days: Optional[int] = None
    reasons: list[str] = Field(default_factory=list)
    computed_at: Optional[datetime] = None

    @property
    def priority_rank(self) -> int:
        return PRIORITY_RANK[self.priority]

    @property
    def demand_score(self) -> int:
        """Tiebreak used when rationing capacity: sales plus failed searches."""
        return self.sales_90d + self.searches_90d
