"""
Recommendation engine entry points.

Flow for one organization
-------------------------
1. gather_inputs()          -> EngineInputs   (inventory, demand, settings)
2. build_size_metrics()     -> SizeMetrics    (union of every size key)
3. classify_all()           -> StockRecommendation per size
4. apply_capacity_limits()  -> clamp/demote "stock" recommendations
5. save_recommendations()   -> delete, insert, clear the stale flag

``compute_recommendations`` runs steps 1-4 and writes nothing;
``refresh_recommendations`` runs all five. Different organizations share no
state, so callers may refresh them in any order.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from tire_slingers.db.repositories.organization_repo import OrganizationRepository
from tire_slingers.db.repositories.recommendation_repo import StockRecommendationRepository
from tire_slingers.models.inventory import Organization
from tire_slingers.models.recommendation import StockRecommendation
from tire_slingers.recommendations.aggregator import gather_inputs
from tire_slingers.recommendations.allocator import apply_capacity_limits
from tire_slingers.recommendations.classifier import classify_all
from tire_slingers.recommendations.metrics import build_size_metrics
from tire_slingers.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY_TOTAL_TIRES = 200


@dataclass
class ComputeResult:
    """Output of one engine run.

    Attributes:
        recommendations:     One per size key, after capacity limits.
        total_current_stock: Units on hand across all sizes.
        capacity_used:       Projected units on hand after granted restocks.
        capacity:            The ceiling the run was allocated against.
    """

    recommendations:     list[StockRecommendation] = field(default_factory=list)
    total_current_stock: int = 0
    capacity_used:       int = 0
    capacity:            int = DEFAULT_CAPACITY_TOTAL_TIRES

    def count_by_action(self) -> dict[str, int]:
        counts = {"stock": 0, "purge": 0, "hold": 0}
        for rec in self.recommendations:
            counts[rec.action] += 1
        return counts


def compute_recommendations(
    conn: sqlite3.Connection,
    org_id: str,
    *,
    now: Optional[datetime] = None,
    default_capacity: int = DEFAULT_CAPACITY_TOTAL_TIRES,
) -> ComputeResult:
    """Compute (but do not store) recommendations for one organization.

    Args:
        conn:             Open SQLite connection.
        org_id:           Organization to score.
        now:              Reference time; defaults to the current UTC time.
        default_capacity: Ceiling used when the organization has none set.

    Returns:
        ComputeResult with the allocated recommendations and totals.
    """
    now = now or utcnow()

    inputs  = gather_inputs(conn, org_id, now, default_capacity=default_capacity)
    metrics = build_size_metrics(inputs)
    recs    = classify_all(metrics, inputs.settings, org_id)
    summary = apply_capacity_limits(recs, inputs.capacity)

    result = ComputeResult(
        recommendations=recs,
        total_current_stock=summary.total_current_stock,
        capacity_used=summary.capacity_used,
        capacity=inputs.capacity,
    )
    logger.info(
        "Computed %d recommendation(s) for org=%s | on_hand=%d used=%d/%d | %s",
        len(recs), org_id,
        result.total_current_stock, result.capacity_used, result.capacity,
        result.count_by_action(),
    )
    return result


def save_recommendations(
    conn: sqlite3.Connection,
    org_id: str,
    recommendations: list[StockRecommendation],
    computed_at: Optional[datetime] = None,
) -> int:
    """Replace the organization's stored recommendations and clear its stale flag.

    Delete, insert and flag update each commit on their own: a failed insert
    leaves the organization with no stored recommendations until the next
    successful run. Errors propagate.

    Args:
        conn:            Open SQLite connection.
        org_id:          Organization being replaced.
        recommendations: The full new set.
        computed_at:     Timestamp stamped on every row; defaults to now.

    Returns:
        Number of rows inserted.
    """
    computed_at = computed_at or utcnow()
    repo = StockRecommendationRepository(conn)

    deleted = repo.delete_for_org(org_id)
    conn.commit()

    inserted = repo.insert_many(recommendations, computed_at)
    conn.commit()

    OrganizationRepository(conn).clear_stale_flag(org_id)
    conn.commit()

    logger.info(
        "Saved recommendations for org=%s: %d replaced by %d.",
        org_id, deleted, inserted,
    )
    return inserted


def refresh_recommendations(
    conn: sqlite3.Connection,
    org_id: str,
    *,
    now: Optional[datetime] = None,
    default_capacity: int = DEFAULT_CAPACITY_TOTAL_TIRES,
) -> ComputeResult:
    """Compute and store recommendations for one organization."""
    now = now or utcnow()
    result = compute_recommendations(
        conn, org_id, now=now, default_capacity=default_capacity
    )
    save_recommendations(conn, org_id, result.recommendations, computed_at=now)
    return result


def get_recommendations(
    conn: sqlite3.Connection,
    org_id: str,
    include_hold: bool = True,
) -> list[StockRecommendation]:
    """Stored recommendations, high priority and largest need first."""
    return StockRecommendationRepository(conn).get_for_org(org_id, include_hold=include_hold)


def needs_refresh(conn: sqlite3.Connection, org_id: str) -> bool:
    """True when the organization is flagged stale or is not known at all."""
    stale = OrganizationRepository(conn).is_stale(org_id)
    return True if stale is None else stale


def list_stale_organizations(conn: sqlite3.Connection) -> list[Organization]:
    """Organizations whose stored recommendations are out of date."""
    return OrganizationRepository(conn).list_stale()
