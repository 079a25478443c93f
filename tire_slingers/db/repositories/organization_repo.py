"""
Repositories for organizations and their inventory settings.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from tire_slingers.db.repositories.base import BaseRepository
from tire_slingers.models.inventory import Organization
from tire_slingers.models.settings import InventorySettings

logger = logging.getLogger(__name__)


class OrganizationRepository(BaseRepository):
    """Read/write access to ``organizations``."""

    def insert(self, org: Organization) -> str:
        """Insert an organization and return its ``org_id``."""
        self.execute(
            """
            INSERT INTO organizations (
                org_id, name, capacity_total_tires, recommendations_stale
            ) VALUES (?, ?, ?, ?);
            """,
            (
                org.org_id,
                org.name,
                org.capacity_total_tires,
                int(org.recommendations_stale),
            ),
        )
        return org.org_id

    def get_by_id(self, org_id: str) -> Optional[Organization]:
        """Fetch one organization, or ``None``."""
        row = self.fetchone("SELECT * FROM organizations WHERE org_id = ?;", (org_id,))
        return _row_to_organization(row) if row else None

    def get_capacity(self, org_id: str) -> Optional[int]:
        """Return the organization's capacity ceiling, or ``None`` if unset/unknown."""
        _, capacity = self.scalar(
            "SELECT capacity_total_tires FROM organizations WHERE org_id = ?;",
            (org_id,),
        )
        return capacity

    def is_stale(self, org_id: str) -> Optional[bool]:
        """Return the stored stale flag, or ``None`` if the organization is unknown."""
        found, stale = self.scalar(
            "SELECT recommendations_stale FROM organizations WHERE org_id = ?;",
            (org_id,),
        )
        return bool(stale) if found else None

    def list_stale(self) -> list[Organization]:
        """Return every organization whose recommendations need a refresh."""
        rows = self.fetchall(
            """
            SELECT * FROM organizations
            WHERE recommendations_stale = 1
            ORDER BY org_id;
            """
        )
        return [_row_to_organization(r) for r in rows]

    def clear_stale_flag(self, org_id: str) -> None:
        """Mark the organization's stored recommendations as fresh."""
        self.execute(
            "UPDATE organizations SET recommendations_stale = 0 WHERE org_id = ?;",
            (org_id,),
        )


class InventorySettingsRepository(BaseRepository):
    """Read/write access to ``inventory_settings``."""

    def upsert(self, settings: InventorySettings) -> None:
        """Insert or replace the settings row for ``settings.org_id``.

        Raises:
            ValueError: If ``settings.org_id`` is ``None``.
        """
        if settings.org_id is None:
            raise ValueError("Cannot store InventorySettings without an org_id.")
        self.execute(
            """
            INSERT INTO inventory_settings (
                org_id, sales_window_days, search_window_days, min_search_threshold,
                stale_age_days, overstock_percent, safety_multiplier,
                packaging_set_size, enable_search_demand, enable_request_demand
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(org_id) DO UPDATE SET
                sales_window_days     = excluded.sales_window_days,
                search_window_days    = excluded.search_window_days,
                min_search_threshold  = excluded.min_search_threshold,
                stale_age_days        = excluded.stale_age_days,
                overstock_percent     = excluded.overstock_percent,
                safety_multiplier     = excluded.safety_multiplier,
                packaging_set_size    = excluded.packaging_set_size,
                enable_search_demand  = excluded.enable_search_demand,
                enable_request_demand = excluded.enable_request_demand,
                updated_at            = strftime('%Y-%m-%dT%H:%M:%SZ', 'now');
            """,
            (
                settings.org_id,
                settings.sales_window_days,
                settings.search_window_days,
                settings.min_search_threshold,
                settings.stale_age_days,
                settings.overstock_percent,
                settings.safety_multiplier,
                settings.packaging_set_size,
                int(settings.enable_search_demand),
                int(settings.enable_request_demand),
            ),
        )

    def get_for_org(self, org_id: str) -> Optional[InventorySettings]:
        """Fetch the organization's settings, or ``None`` if it has none."""
        row = self.fetchone(
            "SELECT * FROM inventory_settings WHERE org_id = ?;", (org_id,)
        )
        return _row_to_settings(row) if row else None


# ── Private helpers ────────────────────────────────────────────────────────────

def _row_to_organization(row: sqlite3.Row) -> Organization:
    return Organization(
        org_id=row["org_id"],
        name=row["name"],
        capacity_total_tires=row["capacity_total_tires"],
        recommendations_stale=bool(row["recommendations_stale"]),
    )


def _row_to_settings(row: sqlite3.Row) -> InventorySettings:
    return InventorySettings(
        org_id=row["org_id"],
        sales_window_days=row["sales_window_days"],
        search_window_days=row["search_window_days"],
        min_search_threshold=row["min_search_threshold"],
        stale_age_days=row["stale_age_days"],
        overstock_percent=row["overstock_percent"],
        safety_multiplier=row["safety_multiplier"],
        packaging_set_size=row["packaging_set_size"],
        enable_search_demand=bool(row["enable_search_demand"]),
        enable_request_demand=bool(row["enable_request_demand"]),
    )
