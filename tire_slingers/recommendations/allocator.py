"""
Capacity allocator: rations "stock" recommendations against the facility's
total-unit ceiling.

Greedy walk
-----------
1. projected = sum(current_stock) over every recommendation.
2. Stable-sort the "stock" subset by priority (high, medium, low), then by
   sales_90d + searches_90d descending.
3. For each: available = capacity - projected.
     available <= 0        -> need 0, demoted to "hold"
     need > available      -> need clamped to available (still "stock")
   projected += need.

Purge and hold recommendations are never touched. The allocation is
order-dependent and not optimal; ties keep classification order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tire_slingers.models.recommendation import StockRecommendation

logger = logging.getLogger(__name__)


@dataclass
class CapacitySummary:
    """Totals reported alongside an allocated recommendation set.

    Attributes:
        total_current_stock: Units on hand across all sizes (not adjusted).
        capacity_used:       Projected units on hand after granted restocks.
    """

    total_current_stock: int
    capacity_used:       int


def allocation_order(recommendations: list[StockRecommendation]) -> list[StockRecommendation]:
    """The "stock" subset in the order capacity is handed out."""
    stock_recs = [r for r in recommendations if r.action == "stock"]
    return sorted(stock_recs, key=lambda r: (r.priority_rank, -r.demand_score))


def apply_capacity_limits(
    recommendations: list[StockRecommendation],
    capacity:        int,
) -> CapacitySummary:
    """Clamp or demote "stock" recommendations in place so projected stock fits.

    Args:
        recommendations: Classified recommendations (mutated in place).
        capacity:        Facility-wide unit ceiling.

    Returns:
        CapacitySummary with the unadjusted on-hand total and final projection.
    """
    total_current_stock = sum(r.current_stock for r in recommendations)
    projected = total_current_stock

    for rec in allocation_order(recommendations):
        available = capacity - projected
        if available <= 0:
            rec.need_units = 0
            rec.action     = "hold"
            rec.reasons.append("Capacity limit reached")
        elif rec.need_units > available:
            rec.need_units = available
            rec.reasons.append(f"Limited by capacity ({available} slots available)")
        projected += rec.need_units

    if projected >= capacity:
        logger.info(
            "Capacity reached: %d/%d units projected (%d on hand).",
            projected, capacity, total_current_stock,
        )

    return CapacitySummary(total_current_stock=total_current_stock, capacity_used=projected)
