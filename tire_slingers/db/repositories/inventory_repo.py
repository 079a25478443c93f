"""
Repository for tire inventory lines.
"""

from __future__ import annotations

import logging
import sqlite3

from tire_slingers.db.repositories.base import BaseRepository
from tire_slingers.models.inventory import TireRow
from tire_slingers.utils.time_utils import (
    format_db_timestamp,
    is_valid_dot_year,
    parse_db_timestamp,
)

logger = logging.getLogger(__name__)


class TireRepository(BaseRepository):
    """Read/write access to ``tires``."""

    def insert(self, tire: TireRow) -> int:
        """Insert an inventory line and return its ``tire_id``."""
        return self.insert_row(
            """
            INSERT INTO tires (
                org_id, size_key, brand, quantity, dot_week, dot_year,
                is_active, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                tire.org_id,
                tire.size_key,
                tire.brand,
                tire.quantity,
                tire.dot_week,
                tire.dot_year,
                int(tire.is_active),
                format_db_timestamp(tire.created_at),
            ),
        )

    def get_in_stock(self, org_id: str) -> list[TireRow]:
        """Return the organization's active lines with at least one unit on hand."""
        rows = self.fetchall(
            """
            SELECT * FROM tires
            WHERE org_id = ? AND is_active = 1 AND quantity > 0
            ORDER BY tire_id;
            """,
            (org_id,),
        )
        return [_row_to_tire(r) for r in rows]


def _row_to_tire(row: sqlite3.Row) -> TireRow:
    dot_week, dot_year = row["dot_week"], row["dot_year"]
    if (dot_week is not None and not 1 <= dot_week <= 53) or (
        dot_year is not None and not is_valid_dot_year(dot_year)
    ):
        logger.warning(
            "tire_id=%s has an unusable DOT stamp (week=%s, year=%s); aging by created_at.",
            row["tire_id"], dot_week, dot_year,
        )
        dot_week = dot_year = None
    return TireRow(
        tire_id=row["tire_id"],
        org_id=row["org_id"],
        size_key=row["size_key"],
        brand=row["brand"],
        quantity=row["quantity"],
        dot_week=dot_week,
        dot_year=dot_year,
        is_active=bool(row["is_active"]),
        created_at=parse_db_timestamp(row["created_at"]),
    )
