"""
Common base for the Tire Slingers repositories.

A repository wraps one caller-owned ``sqlite3.Connection`` (usually from
``get_connection()``), keeps its SQL explicit, and hands back pydantic models
built by a module-level ``_row_to_*`` function. Repositories never commit:
the engine decides where a write step ends.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)

Params = Sequence[Any] | dict[str, Any]


class BaseRepository:
    """Thin SQL helpers shared by every repository.

    Attributes:
        conn: Connection supplied by the caller; rows come back as ``sqlite3.Row``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        logger.debug("SQL: %s | params: %s", " ".join(sql.split()), params)
        return self.conn.execute(sql, params)

    def executemany(self, sql: str, rows: list[Params]) -> sqlite3.Cursor:
        logger.debug("SQL x%d: %s", len(rows), " ".join(sql.split()))
        return self.conn.executemany(sql, rows)

    def insert_row(self, sql: str, params: Params) -> int:
        """Run an INSERT and return the new row's integer primary key."""
        cursor = self.execute(sql, params)
        if cursor.lastrowid is None:
            raise sqlite3.DatabaseError("INSERT did not produce a rowid.")
        return cursor.lastrowid

    def fetchone(self, sql: str, params: Params = ()) -> Optional[sqlite3.Row]:
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def scalar(self, sql: str, params: Params = ()) -> tuple[bool, Any]:
        """First column of the first row as ``(found, value)``.

        ``found`` is False when the query matched nothing, which lets callers
        tell a missing row from a stored NULL.
        """
        row = self.fetchone(sql, params)
        if row is None:
            return False, None
        return True, row[0]
