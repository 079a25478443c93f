"""
Sequential schema migrations applied after ``apply_schema()``.

There are no down migrations. ``schema_versions`` remembers which version ids
have run; ``run_migrations()`` applies the rest in ``MIGRATIONS`` order and
commits after each one, so a failure leaves every earlier step recorded.

To add a migration, append a ``Migration`` with the next four-digit prefix.
Never edit or reorder one that has shipped.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_VERSION_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS schema_versions (
    version_id  TEXT NOT NULL PRIMARY KEY,
    applied_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    description TEXT
);
"""


@dataclass(frozen=True)
class Migration:
    """One forward-only schema change.

    Attributes:
        version_id:  Sortable id, e.g. ``"0002_recommendation_lookup_index"``.
        description: Stored in ``schema_versions`` for humans.
        sql:         Script run with ``executescript``; empty for marker entries.
    """

    version_id:  str
    description: str
    sql:         str = ""


MIGRATIONS: list[Migration] = [
    Migration(
        "0001_bootstrap",
        "Baseline marker: schema_versions exists",
    ),
    Migration(
        "0002_recommendation_lookup_index",
        "idx_recs_org_action for stock board reads by action",
        """
        CREATE INDEX IF NOT EXISTS idx_recs_org_action
            ON stock_recommendations(org_id, action);
        """,
    ),
    Migration(
        "0003_stale_org_index",
        "Partial idx_orgs_stale so batch refresh finds flagged yards",
        """
        CREATE INDEX IF NOT EXISTS idx_orgs_stale
            ON organizations(recommendations_stale)
            WHERE recommendations_stale = 1;
        """,
    ),
    Migration(
        "0004_run_history_index",
        "idx_runs_org_started for per-yard run history",
        """
        CREATE INDEX IF NOT EXISTS idx_runs_org_started
            ON run_metadata(org_id, started_at);
        """,
    ),
]


def applied_versions(conn: sqlite3.Connection) -> set[str]:
    """Version ids already recorded (creates ``schema_versions`` if needed)."""
    conn.executescript(_VERSION_TABLE_DDL)
    return {row[0] for row in conn.execute("SELECT version_id FROM schema_versions;")}


def pending_migrations(conn: sqlite3.Connection) -> list[Migration]:
    done = applied_versions(conn)
    return [m for m in MIGRATIONS if m.version_id not in done]


def run_migrations(conn: sqlite3.Connection) -> int:
    """Apply every pending migration in order.

    Args:
        conn: Connection to a database that already has the base schema.

    Returns:
        How many migrations ran in this call (0 when up to date).

    Raises:
        sqlite3.Error: The failing migration is rolled back and re-raised.
    """
    pending = pending_migrations(conn)
    if not pending:
        logger.debug("Schema up to date (%d migration(s) recorded).", len(MIGRATIONS))
        return 0

    for migration in pending:
        logger.info("Migration %s: %s", migration.version_id, migration.description)
        try:
            if migration.sql.strip():
                conn.executescript(migration.sql)
            conn.execute(
                "INSERT INTO schema_versions (version_id, description) VALUES (?, ?);",
                (migration.version_id, migration.description),
            )
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Migration %s failed: %s", migration.version_id, exc)
            raise

    logger.info("Applied %d migration(s).", len(pending))
    return len(pending)
