"""
SQLite schema DDL: all CREATE TABLE and CREATE INDEX statements.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is **idempotent**:
safe to call on an already-initialized database (e.g. after restart or in tests).

Table creation order respects foreign key dependencies:
  1. organizations          (no FKs)
  2. inventory_settings     (→ organizations)
  3. tires                  (→ organizations)
  4. sales_events           (→ organizations, tires)
  5. search_events          (→ organizations)
  6. customer_requests      (→ organizations)
  7. stock_recommendations  (→ organizations)
  8. run_metadata           (no FKs)

Timestamp columns hold UTC ``YYYY-MM-DDTHH:MM:SSZ`` strings.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_ORGANIZATIONS = """
CREATE TABLE IF NOT EXISTS organizations (
    org_id                 TEXT    PRIMARY KEY,
    name                   TEXT    NOT NULL,
    capacity_total_tires   INTEGER,
    recommendations_stale  INTEGER NOT NULL DEFAULT 1,
    created_at             TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_INVENTORY_SETTINGS = """
CREATE TABLE IF NOT EXISTS inventory_settings (
    org_id                 TEXT    PRIMARY KEY REFERENCES organizations(org_id),
    sales_window_days      INTEGER NOT NULL DEFAULT 90,
    search_window_days     INTEGER NOT NULL DEFAULT 90,
    min_search_threshold   INTEGER NOT NULL DEFAULT 3,
    stale_age_days         INTEGER NOT NULL DEFAULT 1800,
    overstock_percent      REAL    NOT NULL DEFAULT 50,
    safety_multiplier      REAL    NOT NULL DEFAULT 2.0,
    packaging_set_size     INTEGER NOT NULL DEFAULT 4,
    enable_search_demand   INTEGER NOT NULL DEFAULT 1,
    enable_request_demand  INTEGER NOT NULL DEFAULT 1,
    created_at             TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    updated_at             TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_TIRES = """
CREATE TABLE IF NOT EXISTS tires (
    tire_id     INTEGER PRIMARY KEY AUTOINCREMENT,
    org_id      TEXT    NOT NULL REFERENCES organizations(org_id),
    size_key    TEXT,
    brand       TEXT,
    quantity    INTEGER NOT NULL DEFAULT 1,
    dot_week    INTEGER,
    dot_year    INTEGER,
    is_active   INTEGER NOT NULL DEFAULT 1,
    created_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_TIRES_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_tires_org_active
    ON tires(org_id, is_active);
CREATE INDEX IF NOT EXISTS idx_tires_org_size
    ON tires(org_id, size_key);
"""

_DDL_SALES_EVENTS = """
CREATE TABLE IF NOT EXISTS sales_events (
    sale_id        INTEGER PRIMARY KEY AUTOINCREMENT,
    org_id         TEXT    NOT NULL REFERENCES organizations(org_id),
    tire_id        INTEGER REFERENCES tires(tire_id),
    size_key       TEXT    NOT NULL,
    quantity_sold  INTEGER NOT NULL DEFAULT 1,
    sold_at        TEXT    NOT NULL
);
"""

_DDL_SEARCH_EVENTS = """
CREATE TABLE IF NOT EXISTS search_events (
    search_id           INTEGER PRIMARY KEY AUTOINCREMENT,
    org_id              TEXT    NOT NULL REFERENCES organizations(org_id),
    query               TEXT,
    requested_size      TEXT,
    requested_quantity  INTEGER,
    result_count        INTEGER NOT NULL DEFAULT 0,
    searched_at         TEXT    NOT NULL
);
"""

_DDL_CUSTOMER_REQUESTS = """
CREATE TABLE IF NOT EXISTS customer_requests (
    request_id          INTEGER PRIMARY KEY AUTOINCREMENT,
    org_id              TEXT    NOT NULL REFERENCES organizations(org_id),
    requested_size      TEXT,
    requested_quantity  INTEGER,
    status              TEXT    NOT NULL DEFAULT 'new',
    customer_name       TEXT,
    submitted_at        TEXT    NOT NULL
);
"""

_DDL_DEMAND_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_sales_org_time
    ON sales_events(org_id, sold_at);
CREATE INDEX IF NOT EXISTS idx_search_org_time
    ON search_events(org_id, searched_at);
CREATE INDEX IF NOT EXISTS idx_requests_org_time
    ON customer_requests(org_id, submitted_at);
"""

_DDL_STOCK_RECOMMENDATIONS = """
CREATE TABLE IF NOT EXISTS stock_recommendations (
    rec_id           INTEGER PRIMARY KEY AUTOINCREMENT,
    org_id           TEXT    NOT NULL REFERENCES organizations(org_id),
    size_key         TEXT    NOT NULL,
    size_display     TEXT    NOT NULL,
    current_stock    INTEGER NOT NULL,
    target_stock     INTEGER NOT NULL,
    need_units       INTEGER NOT NULL,
    action           TEXT    NOT NULL,
    priority         TEXT    NOT NULL,
    flag             TEXT,
    sales_90d        INTEGER NOT NULL DEFAULT 0,
    searches_90d     INTEGER NOT NULL DEFAULT 0,
    requests_90d     INTEGER NOT NULL DEFAULT 0,
    avg_age_days     INTEGER,
    oldest_age_days  INTEGER,
    reasons          TEXT    NOT NULL DEFAULT '[]',
    computed_at      TEXT    NOT NULL
);
"""

_DDL_RUN_METADATA = """
CREATE TABLE IF NOT EXISTS run_metadata (
    run_id          INTEGER PRIMARY KEY AUTOINCREMENT,
    run_slug        TEXT    NOT NULL UNIQUE,
    pipeline_stage  TEXT    NOT NULL,
    status          TEXT    NOT NULL DEFAULT 'started',
    org_id          TEXT,
    config_snapshot TEXT    NOT NULL,
    rows_processed  INTEGER NOT NULL DEFAULT 0,
    error_message   TEXT,
    started_at      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    finished_at     TEXT
);
"""

# ── Ordered list of all DDL to apply ──────────────────────────────────────────

_ALL_DDL: list[str] = [
    _DDL_ORGANIZATIONS,
    _DDL_INVENTORY_SETTINGS,
    _DDL_TIRES,
    _DDL_TIRES_INDEXES,
    _DDL_SALES_EVENTS,
    _DDL_SEARCH_EVENTS,
    _DDL_CUSTOMER_REQUESTS,
    _DDL_DEMAND_INDEXES,
    _DDL_STOCK_RECOMMENDATIONS,
    _DDL_RUN_METADATA,
]

# Table names for introspection / tests
ALL_TABLE_NAMES = [
    "organizations",
    "inventory_settings",
    "tires",
    "sales_events",
    "search_events",
    "customer_requests",
    "stock_recommendations",
    "run_metadata",
]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn``.

    Idempotent: safe to call on an already-initialized database.

    Args:
        conn: An open ``sqlite3.Connection`` (FK enforcement should be ON).
    """
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables, indexes created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    """Split a multi-statement DDL block on semicolons."""
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return the sorted list of table names present in the database."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]


def get_existing_indexes(conn: sqlite3.Connection) -> list[str]:
    """Return the sorted list of index names present in the database."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='index' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]
