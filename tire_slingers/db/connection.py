"""
SQLite connections for the recommendation engine.

``get_connection(db_path, ...)`` opens a connection, applies the pragmas in
``configure_connection()`` and scopes one unit of work: commit when the block
exits cleanly, roll back when it raises, always close. ``db_session(config)``
is the same thing driven by ``DatabaseConfig``, which is what the CLI and the
pipeline stage use.

Usage::

    from tire_slingers.db.connection import db_session

    with db_session(config.database) as conn:
        refresh_recommendations(conn, "yard-1")

The engine commits its own write steps inside the block; the final commit
here then only covers whatever the caller did afterwards.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Generator

if TYPE_CHECKING:
    from tire_slingers.config import DatabaseConfig

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"


def configure_connection(
    conn: sqlite3.Connection,
    wal_mode: bool = False,
    busy_timeout_ms: int = 5000,
) -> sqlite3.Connection:
    """Apply row factory and pragmas to an already-open connection.

    Foreign keys are always enforced. WAL keeps storefront reads flowing
    while a refresh rewrites ``stock_recommendations``; it has no effect on
    in-memory databases.
    """
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)};")
    if wal_mode:
        conn.execute("PRAGMA journal_mode = WAL;")
    return conn


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Generator[sqlite3.Connection, None, None]:
    """Yield a configured connection to ``db_path``.

    Parent directories of a file database are created on demand.

    Args:
        db_path:         SQLite file path, or ``":memory:"``.
        wal_mode:        Switch the journal to WAL.
        busy_timeout_ms: How long to wait on a locked database.

    Raises:
        sqlite3.OperationalError: The file cannot be opened or stays locked.
    """
    if db_path != IN_MEMORY:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    logger.debug("SQLite open: %s (wal=%s)", db_path, wal_mode)
    try:
        configure_connection(conn, wal_mode=wal_mode, busy_timeout_ms=busy_timeout_ms)
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def db_session(
    config: "DatabaseConfig",
    db_path: str | None = None,
) -> Generator[sqlite3.Connection, None, None]:
    """``get_connection()`` with settings from ``DatabaseConfig``.

    ``db_path`` overrides ``config.db_path`` (``init-db --db-path``, stages
    built with an explicit path).
    """
    with get_connection(
        db_path or config.db_path,
        wal_mode=config.wal_mode,
        busy_timeout_ms=config.busy_timeout_ms,
    ) as conn:
        yield conn
