"""
Repository for stored stock recommendations.

An organization's recommendation set is never patched: the engine deletes
every row for the organization and inserts the freshly computed set.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime

from tire_slingers.db.repositories.base import BaseRepository
from tire_slingers.models.recommendation import StockRecommendation
from tire_slingers.utils.time_utils import format_db_timestamp, parse_db_timestamp

logger = logging.getLogger(__name__)

_INSERT_SQL = """
INSERT INTO stock_recommendations (
    org_id, size_key, size_display, current_stock, target_stock, need_units,
    action, priority, flag, sales_90d, searches_90d, requests_90d,
    avg_age_days, oldest_age_days, reasons, computed_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""


class StockRecommendationRepository(BaseRepository):
    """Read/write access to ``stock_recommendations``."""

    def delete_for_org(self, org_id: str) -> int:
        """Delete every stored recommendation for ``org_id``; return rows removed."""
        cursor = self.execute(
            "DELETE FROM stock_recommendations WHERE org_id = ?;", (org_id,)
        )
        return cursor.rowcount

    def insert_many(
        self,
        recommendations: list[StockRecommendation],
        computed_at: datetime,
    ) -> int:
        """Insert recommendations stamped with ``computed_at``; return rows inserted."""
        if not recommendations:
            return 0
        stamp = format_db_timestamp(computed_at)
        self.executemany(
            _INSERT_SQL,
            [
                (
                    rec.org_id,
                    rec.size_key,
                    rec.size_display,
                    rec.current_stock,
                    rec.target_stock,
                    rec.need_units,
                    rec.action,
                    rec.priority,
                    rec.flag,
                    rec.sales_90d,
                    rec.searches_90d,
                    rec.requests_90d,
                    rec.avg_age_days,
                    rec.oldest_age_days,
                    json.dumps(rec.reasons),
                    stamp,
                )
                for rec in recommendations
            ],
        )
        return len(recommendations)

    def get_for_org(
        self,
        org_id: str,
        include_hold: bool = True,
    ) -> list[StockRecommendation]:
        """Fetch stored recommendations, most urgent first.

        Ordered by priority (high, medium, low), then ``need_units`` descending.

        Args:
            org_id: Organization to read.
            include_hold: When ``False``, only actionable (stock/purge) rows.
        """
        hold_filter = "" if include_hold else "AND action != 'hold'"
        rows = self.fetchall(
            f"""
            SELECT * FROM stock_recommendations
            WHERE org_id = ? {hold_filter}
            ORDER BY
                CASE priority WHEN 'high' THEN 0 WHEN 'medium' THEN 1 ELSE 2 END,
                need_units DESC,
                rec_id;
            """,
            (org_id,),
        )
        return [_row_to_recommendation(r) for r in rows]


def _row_to_recommendation(row: sqlite3.Row) -> StockRecommendation:
    return StockRecommendation(
        rec_id=row["rec_id"],
        org_id=row["org_id"],
        size_key=row["size_key"],
        size_display=row["size_display"],
        current_stock=row["current_stock"],
        target_stock=row["target_stock"],
        need_units=row["need_units"],
        action=row["action"],
        priority=row["priority"],
        flag=row["flag"],
        sales_90d=row["sales_90d"],
        searches_90d=row["searches_90d"],
        requests_90d=row["requests_90d"],
        avg_age_days=row["avg_age_days"],
        oldest_age_days=row["oldest_age_days"],
        reasons=json.loads(row["reasons"]),
        computed_at=parse_db_timestamp(row["computed_at"]),
    )
