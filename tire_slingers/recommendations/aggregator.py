"""
Input aggregation: pull one organization's inventory and demand events out of
the DB and fold them into per-size maps.

Every map is keyed by normalized size key. Sizes recorded in display form
(``"205/55R16"``) by searches or requests are normalized on the way in, so
a size seen in the yard and asked for by a customer lands on one key.

Windows
-------
  sales     : ``settings.sales_window_days``  before ``now``
  searches  : ``settings.search_window_days`` before ``now``
  requests  : ``settings.search_window_days`` before ``now``

Nothing here writes to the DB; read errors propagate to the caller.
"""

from __future__ import annotations

import logging
import sqlite3
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime

from tire_slingers.db.repositories.demand_repo import DemandEventRepository
from tire_slingers.db.repositories.inventory_repo import TireRepository
from tire_slingers.db.repositories.organization_repo import (
    InventorySettingsRepository,
    OrganizationRepository,
)
from tire_slingers.models.inventory import (
    CustomerRequest,
    SalesEvent,
    SearchEvent,
    TireRow,
)
from tire_slingers.models.settings import DEFAULT_INVENTORY_SETTINGS, InventorySettings
from tire_slingers.sizes import normalize_size_key
from tire_slingers.utils.time_utils import tire_age_days, window_start

logger = logging.getLogger(__name__)


@dataclass
class InventoryBucket:
    """On-hand units for one size.

    Attributes:
        total: Units in stock.
        ages:  One age (days) per unit, so a row of quantity N adds N samples.
    """

    total: int = 0
    ages:  list[int] = field(default_factory=list)


@dataclass
class EngineInputs:
    """Everything the engine needs for one organization, already grouped by size.

    Attributes:
        org_id:    Organization the inputs belong to.
        inventory: size_key -> InventoryBucket.
        sales:     size_key -> units sold in the sales window.
        searches:  size_key -> units asked for by zero-result searches.
        requests:  size_key -> units asked for by open customer requests.
        settings:  Organization settings, or the defaults.
        capacity:  Facility-wide unit ceiling.
    """

    org_id:    str
    inventory: dict[str, InventoryBucket]
    sales:     dict[str, int]
    searches:  dict[str, int]
    requests:  dict[str, int]
    settings:  InventorySettings
    capacity:  int


def group_inventory(tires: list[TireRow], now: datetime) -> dict[str, InventoryBucket]:
    """Fold in-stock rows into per-size totals and per-unit ages.

    Rows without a size key are skipped.
    """
    buckets: dict[str, InventoryBucket] = {}
    for tire in tires:
        if not tire.size_key:
            continue
        bucket = buckets.setdefault(tire.size_key, InventoryBucket())
        age = tire_age_days(now, tire.created_at, tire.dot_week, tire.dot_year)
        bucket.total += tire.quantity
        bucket.ages.extend([age] * tire.quantity)
    return buckets


def sum_sales(sales: list[SalesEvent]) -> dict[str, int]:
    """Units sold per size key."""
    totals: dict[str, int] = defaultdict(int)
    for sale in sales:
        totals[sale.size_key] += sale.quantity_sold
    return dict(totals)


def sum_searches(searches: list[SearchEvent]) -> dict[str, int]:
    """Requested units per normalized size for failed searches (quantity defaults to 1)."""
    totals: dict[str, int] = defaultdict(int)
    for search in searches:
        if not search.requested_size:
            continue
        totals[normalize_size_key(search.requested_size)] += search.requested_quantity or 1
    return dict(totals)


def sum_requests(requests: list[CustomerRequest]) -> dict[str, int]:
    """Requested units per normalized size for open requests (quantity defaults to 1)."""
    totals: dict[str, int] = defaultdict(int)
    for req in requests:
        if not req.requested_size:
            continue
        totals[normalize_size_key(req.requested_size)] += req.requested_quantity or 1
    return dict(totals)


def load_settings(conn: sqlite3.Connection, org_id: str) -> InventorySettings:
    """Return the organization's settings, falling back to the defaults."""
    settings = InventorySettingsRepository(conn).get_for_org(org_id)
    if settings is None:
        logger.debug("No inventory settings for org=%s; using defaults.", org_id)
        return DEFAULT_INVENTORY_SETTINGS.model_copy(update={"org_id": org_id})
    return settings


def gather_inputs(
    conn: sqlite3.Connection,
    org_id: str,
    now: datetime,
    default_capacity: int = 200,
) -> EngineInputs:
    """Read and group one organization's inventory and demand.

    Args:
        conn:             Open SQLite connection.
        org_id:           Organization to aggregate.
        now:              Reference time for ages and trailing windows.
        default_capacity: Ceiling used when the organization has none (or 0).

    Returns:
        EngineInputs with all four maps populated (possibly empty).
    """
    settings = load_settings(conn, org_id)
    capacity = OrganizationRepository(conn).get_capacity(org_id) or default_capacity

    demand       = DemandEventRepository(conn)
    sales_since  = window_start(now, settings.sales_window_days)
    search_since = window_start(now, settings.search_window_days)

    inputs = EngineInputs(
        org_id=org_id,
        inventory=group_inventory(TireRepository(conn).get_in_stock(org_id), now),
        sales=sum_sales(demand.get_sales_since(org_id, sales_since)),
        searches=sum_searches(demand.get_failed_searches_since(org_id, search_since)),
        requests=sum_requests(demand.get_open_requests_since(org_id, search_since)),
        settings=settings,
        capacity=capacity,
    )
    logger.debug(
        "Aggregated org=%s: %d stocked size(s), %d sold, %d searched, %d requested | capacity=%d",
        org_id,
        len(inputs.inventory), len(inputs.sales),
        len(inputs.searches), len(inputs.requests),
        capacity,
    )
    return inputs
