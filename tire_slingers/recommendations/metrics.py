"""
Per-size metrics: the union of every size key seen in stock or demand,
each with its raw counts and stock-age statistics.

Pure functions, no DB or I/O.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from tire_slingers.recommendations.aggregator import EngineInputs
from tire_slingers.sizes import to_size_display


@dataclass
class SizeMetrics:
    """Raw signal counts and age statistics for one size.

    Attributes:
        size_key:        Normalized size key.
        size_display:    Display form, or the key itself when unparseable.
        current_stock:   Units on hand (0 for demand-only sizes).
        sales_count:     Units sold in the sales window.
        search_count:    Units asked for by failed searches.
        request_count:   Units asked for by open customer requests.
        avg_age_days:    Mean unit age (rounded), ``None`` with no stock.
        oldest_age_days: Oldest unit age, ``None`` with no stock.
    """

    size_key:        str
    size_display:    str
    current_stock:   int
    sales_count:     int
    search_count:    int
    request_count:   int
    avg_age_days:    Optional[int]
    oldest_age_days: Optional[int]


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (``round()`` rounds to even)."""
    return math.floor(value + 0.5)


def build_size_metrics(inputs: EngineInputs) -> list[SizeMetrics]:
    """Build one SizeMetrics per size key in the union of all four input maps.

    Sizes are returned in key order; nothing downstream depends on it.
    """
    all_sizes = (
        set(inputs.inventory)
        | set(inputs.sales)
        | set(inputs.searches)
        | set(inputs.requests)
    )

    metrics: list[SizeMetrics] = []
    for size_key in sorted(all_sizes):
        bucket = inputs.inventory.get(size_key)
        ages   = bucket.ages if bucket else []
        metrics.append(
            SizeMetrics(
                size_key=size_key,
                size_display=to_size_display(size_key),
                current_stock=bucket.total if bucket else 0,
                sales_count=inputs.sales.get(size_key, 0),
                search_count=inputs.searches.get(size_key, 0),
                request_count=inputs.requests.get(size_key, 0),
                avg_age_days=round_half_up(sum(ages) / len(ages)) if ages else None,
                oldest_age_days=max(ages) if ages else None,
            )
        )
    return metrics
