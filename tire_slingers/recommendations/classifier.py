"""
Recommendation classifier: converts one SizeMetrics record into a
StockRecommendation with target, need, action, flag, priority and reasons.

Demand rates (units per 30 days)
--------------------------------
    sales_per_month    = sales_count   * 30 / sales_window_days
    searches_per_month = search_count  * 30 / search_window_days
                         (0 unless search demand is enabled AND
                          search_count >= min_search_threshold)
    requests_per_month = request_count * 30 / search_window_days
                         (0 unless request demand is enabled)

    target_stock = ceil(max(rates) * safety_multiplier)
    need_units   = target_stock - current_stock

Action determination (first match wins)
---------------------------------------
    1. STALE     : oldest_age_days > stale_age_days
                   -> flag "stale"; purge everything on hand (if any)
    2. OVERSTOCK : current_stock > target_stock * (1 + overstock_percent / 100)
                   -> flag "overstock"; purge the excess
    3. STOCK     : need_units > 0
    4. HOLD      : everything else

Reasons accumulate across all branches; priority is derived last.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from tire_slingers.models.recommendation import (
    StockAction,
    StockFlag,
    StockPriority,
    StockRecommendation,
)
from tire_slingers.models.settings import InventorySettings
from tire_slingers.recommendations.metrics import SizeMetrics, round_half_up

_DAYS_PER_MONTH = 30
_DAYS_PER_YEAR  = 365


@dataclass
class DemandRates:
    """Monthly-normalized demand for one size.

    Attributes:
        sales_per_month:    Units sold per 30 days.
        searches_per_month: Failed-search units per 30 days (0 when gated off).
        requests_per_month: Requested units per 30 days (0 when disabled).
    """

    sales_per_month:    float
    searches_per_month: float
    requests_per_month: float

    @property
    def max_demand(self) -> float:
        return max(self.sales_per_month, self.searches_per_month, self.requests_per_month)


def search_signal_counts(search_count: int, settings: InventorySettings) -> bool:
    """True when failed searches are enabled and frequent enough to count as demand."""
    return settings.enable_search_demand and search_count >= settings.min_search_threshold


def compute_demand_rates(m: SizeMetrics, settings: InventorySettings) -> DemandRates:
    """Normalize the three raw counts to units per 30 days."""
    sales_per_month = m.sales_count * _DAYS_PER_MONTH / settings.sales_window_days

    if search_signal_counts(m.search_count, settings):
        searches_per_month = m.search_count * _DAYS_PER_MONTH / settings.search_window_days
    else:
        searches_per_month = 0.0

    if settings.enable_request_demand:
        requests_per_month = m.request_count * _DAYS_PER_MONTH / settings.search_window_days
    else:
        requests_per_month = 0.0

    return DemandRates(
        sales_per_month=sales_per_month,
        searches_per_month=searches_per_month,
        requests_per_month=requests_per_month,
    )


def compute_target_stock(max_demand: float, settings: InventorySettings) -> int:
    """Peak monthly demand times the safety multiplier, rounded up."""
    return math.ceil(max_demand * settings.safety_multiplier)


def determine_priority(
    action:        StockAction,
    flag:          StockFlag | None,
    current_stock: int,
    need_units:    int,
    max_demand:    float,
) -> StockPriority:
    """Derive urgency from the final action.

    Rules:
        stock : high if empty with demand >= 2/month, or need >= 4;
                medium if need >= 2; else low.
        purge : high if stale, or |need| >= 6; medium if |need| >= 3; else low.
        hold  : low.
    """
    if action == "stock":
        if current_stock == 0 and max_demand >= 2:
            return "high"
        if need_units >= 4:
            return "high"
        if need_units >= 2:
            return "medium"
        return "low"
    if action == "purge":
        if flag == "stale":
            return "high"
        if abs(need_units) >= 6:
            return "high"
        if abs(need_units) >= 3:
            return "medium"
        return "low"
    return "low"


def build_demand_reasons(
    m:          SizeMetrics,
    settings:   InventorySettings,
    max_demand: float,
) -> list[str]:
    """Reason strings for the demand signals that actually count."""
    reasons: list[str] = []
    if m.sales_count > 0:
        reasons.append(f"{m.sales_count} sold in last {settings.sales_window_days} days")
    if m.search_count > 0 and search_signal_counts(m.search_count, settings):
        reasons.append(f"{m.search_count} searches with no results")
    if m.request_count > 0 and settings.enable_request_demand:
        reasons.append(f"{m.request_count} customer requests")
    if m.current_stock == 0 and max_demand > 0:
        reasons.append("Out of stock with active demand")
    return reasons


def classify_size(
    m:        SizeMetrics,
    settings: InventorySettings,
    org_id:   str,
) -> StockRecommendation:
    """Classify one size into a stock/purge/hold recommendation.

    Args:
        m:        Metrics for the size.
        settings: Organization settings (or the defaults).
        org_id:   Owning organization.

    Returns:
        StockRecommendation before capacity limits are applied.
    """
    rates        = compute_demand_rates(m, settings)
    max_demand   = rates.max_demand
    target_stock = compute_target_stock(max_demand, settings)
    need_units   = target_stock - m.current_stock

    action: StockAction = "hold"
    flag: StockFlag | None = "normal"
    reasons: list[str] = []

    overstock_ceiling = target_stock * (1 + settings.overstock_percent / 100)

    if m.oldest_age_days is not None and m.oldest_age_days > settings.stale_age_days:
        flag = "stale"
        years = round_half_up(m.oldest_age_days / _DAYS_PER_YEAR)
        reasons.append(f"Old inventory: {years} years old")
        # Empty stale sizes are flagged only.
        if m.current_stock > 0:
            action     = "purge"
            need_units = -m.current_stock
    elif m.current_stock > overstock_ceiling:
        flag   = "overstock"
        excess = m.current_stock - target_stock
        reasons.append(f"Overstocked: {excess} units above target")
        action     = "purge"
        need_units = -excess
    elif need_units > 0:
        action = "stock"

    reasons.extend(build_demand_reasons(m, settings, max_demand))
    if not reasons and m.current_stock > 0:
        reasons.append("No recent demand signals")

    priority = determine_priority(action, flag, m.current_stock, need_units, max_demand)

    return StockRecommendation(
        org_id=org_id,
        size_key=m.size_key,
        size_display=m.size_display,
        current_stock=m.current_stock,
        target_stock=target_stock,
        need_units=need_units,
        action=action,
        priority=priority,
        flag=flag,
        sales_90d=m.sales_count,
        searches_90d=m.search_count,
        requests_90d=m.request_count,
        avg_age_days=m.avg_age_days,
        oldest_age_days=m.oldest_age_days,
        reasons=reasons,
    )


def classify_all(
    metrics:  list[SizeMetrics],
    settings: InventorySettings,
    org_id:   str,
) -> list[StockRecommendation]:
    """Classify every size."""
    return [classify_size(m, settings, org_id) for m in metrics]
