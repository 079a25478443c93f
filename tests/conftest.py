"""
Shared pytest fixtures for the Tire Slingers test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the full
    schema applied. Created anew for each test that requests it.
  - ``file_db``: A file-backed database path under ``tmp_path`` with the
    schema applied, for code that opens its own connections.
  - ``now``: The fixed reference time (``NOW``) engine tests run against.
  - Sample domain object factories and a ``seeder`` for inserting rows.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Generator

import pytest

from tire_slingers.db.connection import configure_connection
from tire_slingers.db.repositories.demand_repo import DemandEventRepository
from tire_slingers.db.repositories.inventory_repo import TireRepository
from tire_slingers.db.repositories.organization_repo import (
    InventorySettingsRepository,
    OrganizationRepository,
)
from tire_slingers.db.schema import apply_schema
from tire_slingers.models.inventory import (
    CustomerRequest,
    Organization,
    SalesEvent,
    SearchEvent,
    TireRow,
)
from tire_slingers.models.recommendation import StockRecommendation
from tire_slingers.models.settings import InventorySettings

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


# ── Database fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the full schema applied.

    Foreign key enforcement is ON. Schema is applied idempotently.
    Connection is closed after the test.
    """
    conn = configure_connection(sqlite3.connect(":memory:"))
    apply_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def file_db(tmp_path) -> str:
    """Path to a file-backed SQLite DB with the schema applied."""
    db_file = str(tmp_path / "test.db")
    conn = configure_connection(sqlite3.connect(db_file))
    apply_schema(conn)
    conn.close()
    return db_file


@pytest.fixture
def now() -> datetime:
    return NOW


# ── Sample domain object factories ────────────────────────────────────────────

@pytest.fixture
def sample_org() -> Organization:
    """A yard with a 200-unit ceiling, flagged stale."""
    return Organization(org_id="yard-1", name="Main Street Tires", capacity_total_tires=200)


@pytest.fixture
def sample_tire() -> TireRow:
    """Four 205/55R16 tires with a 2021 DOT stamp."""
    return TireRow(
        org_id="yard-1",
        size_key="205-55-16",
        brand="Michelin",
        quantity=4,
        dot_week=10,
        dot_year=21,
        created_at=NOW - timedelta(days=30),
    )


@pytest.fixture
def sample_recommendation() -> StockRecommendation:
    """A high-priority stock recommendation for an empty size."""
    return StockRecommendation(
        org_id="yard-1",
        size_key="205-55-16",
        size_display="205/55R16",
        current_stock=0,
        target_stock=4,
        need_units=4,
        action="stock",
        priority="high",
        flag="normal",
        sales_90d=6,
        reasons=["6 sold in last 90 days", "Out of stock with active demand"],
    )


# ── Seeding helpers ───────────────────────────────────────────────────────────

class Seeder:
    """Inserts test rows through the real repositories, committing each one.

    Event timestamps are expressed as days before ``NOW``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def org(
        self,
        org_id: str = "yard-1",
        capacity: int | None = 200,
        stale: bool = True,
        settings: InventorySettings | None = None,
    ) -> str:
        OrganizationRepository(self.conn).insert(
            Organization(
                org_id=org_id,
                name=f"Yard {org_id}",
                capacity_total_tires=capacity,
                recommendations_stale=stale,
            )
        )
        if settings is not None:
            InventorySettingsRepository(self.conn).upsert(
                settings.model_copy(update={"org_id": org_id})
            )
        self.conn.commit()
        return org_id

    def tire(
        self,
        org_id: str,
        size_key: str | None,
        quantity: int = 1,
        age_days: int = 30,
        dot_week: int | None = None,
        dot_year: int | None = None,
        is_active: bool = True,
    ) -> int:
        tire_id = TireRepository(self.conn).insert(
            TireRow(
                org_id=org_id,
                size_key=size_key,
                quantity=quantity,
                dot_week=dot_week,
                dot_year=dot_year,
                is_active=is_active,
                created_at=NOW - timedelta(days=age_days),
            )
        )
        self.conn.commit()
        return tire_id

    def sale(self, org_id: str, size_key: str, quantity: int = 1, days_ago: int = 10) -> None:
        DemandEventRepository(self.conn).insert_sale(
            SalesEvent(
                org_id=org_id,
                size_key=size_key,
                quantity_sold=quantity,
                sold_at=NOW - timedelta(days=days_ago),
            )
        )
        self.conn.commit()

    def search(
        self,
        org_id: str,
        requested_size: str | None,
        quantity: int | None = None,
        result_count: int = 0,
        days_ago: int = 5,
    ) -> None:
        DemandEventRepository(self.conn).insert_search(
            SearchEvent(
                org_id=org_id,
                requested_size=requested_size,
                requested_quantity=quantity,
                result_count=result_count,
                searched_at=NOW - timedelta(days=days_ago),
            )
        )
        self.conn.commit()

    def request(
        self,
        org_id: str,
        requested_size: str | None,
        quantity: int | None = None,
        status: str = "new",
        days_ago: int = 5,
    ) -> None:
        DemandEventRepository(self.conn).insert_request(
            CustomerRequest(
                org_id=org_id,
                requested_size=requested_size,
                requested_quantity=quantity,
                status=status,
                submitted_at=NOW - timedelta(days=days_ago),
            )
        )
        self.conn.commit()


@pytest.fixture
def seeder(in_memory_db) -> Seeder:
    """A Seeder bound to ``in_memory_db``."""
    return Seeder(in_memory_db)


@pytest.fixture
def make_seeder():
    """Factory for Seeders bound to connections the test opens itself."""
    return Seeder
