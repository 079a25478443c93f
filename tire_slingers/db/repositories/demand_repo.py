"""
Repository for the three demand-event streams: sales, searches, requests.

Each ``get_*`` read applies the filters that make an event count as demand
(zero-result searches with a size, open requests) plus a trailing-window
lower bound, so callers only aggregate.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime

from tire_slingers.db.repositories.base import BaseRepository
from tire_slingers.models.inventory import (
    OPEN_REQUEST_STATUSES,
    CustomerRequest,
    SalesEvent,
    SearchEvent,
)
from tire_slingers.utils.time_utils import format_db_timestamp, parse_db_timestamp

logger = logging.getLogger(__name__)


class DemandEventRepository(BaseRepository):
    """Read/write access to ``sales_events``, ``search_events``, ``customer_requests``."""

    # ── Writes ────────────────────────────────────────────────────────────────

    def insert_sale(self, sale: SalesEvent) -> int:
        """Insert a sales event and return its ``sale_id``."""
        return self.insert_row(
            """
            INSERT INTO sales_events (org_id, size_key, quantity_sold, sold_at)
            VALUES (?, ?, ?, ?);
            """,
            (
                sale.org_id,
                sale.size_key,
                sale.quantity_sold,
                format_db_timestamp(sale.sold_at),
            ),
        )

    def insert_search(self, search: SearchEvent) -> int:
        """Insert a search event and return its ``search_id``."""
        return self.insert_row(
            """
            INSERT INTO search_events (
                org_id, query, requested_size, requested_quantity,
                result_count, searched_at
            ) VALUES (?, ?, ?, ?, ?, ?);
            """,
            (
                search.org_id,
                search.query,
                search.requested_size,
                search.requested_quantity,
                search.result_count,
                format_db_timestamp(search.searched_at),
            ),
        )

    def insert_request(self, request: CustomerRequest) -> int:
        """Insert a customer request and return its ``request_id``."""
        return self.insert_row(
            """
            INSERT INTO customer_requests (
                org_id, requested_size, requested_quantity, status,
                customer_name, submitted_at
            ) VALUES (?, ?, ?, ?, ?, ?);
            """,
            (
                request.org_id,
                request.requested_size,
                request.requested_quantity,
                request.status,
                request.customer_name,
                format_db_timestamp(request.submitted_at),
            ),
        )

    # ── Demand reads ──────────────────────────────────────────────────────────

    def get_sales_since(self, org_id: str, since: datetime) -> list[SalesEvent]:
        """Sales events at or after ``since``."""
        rows = self.fetchall(
            """
            SELECT * FROM sales_events
            WHERE org_id = ? AND sold_at >= ?
            ORDER BY sold_at;
            """,
            (org_id, format_db_timestamp(since)),
        )
        return [_row_to_sale(r) for r in rows]

    def get_failed_searches_since(self, org_id: str, since: datetime) -> list[SearchEvent]:
        """Zero-result searches with a requested size, at or after ``since``."""
        rows = self.fetchall(
            """
            SELECT * FROM search_events
            WHERE org_id = ?
              AND result_count = 0
              AND requested_size IS NOT NULL
              AND searched_at >= ?
            ORDER BY searched_at;
            """,
            (org_id, format_db_timestamp(since)),
        )
        return [_row_to_search(r) for r in rows]

    def get_open_requests_since(self, org_id: str, since: datetime) -> list[CustomerRequest]:
        """Requests still ``new`` or ``in_progress``, submitted at or after ``since``."""
        placeholders = ", ".join("?" for _ in OPEN_REQUEST_STATUSES)
        rows = self.fetchall(
            f"""
            SELECT * FROM customer_requests
            WHERE org_id = ?
              AND status IN ({placeholders})
              AND submitted_at >= ?
            ORDER BY submitted_at;
            """,
            (org_id, *OPEN_REQUEST_STATUSES, format_db_timestamp(since)),
        )
        return [_row_to_request(r) for r in rows]


# ── Private helpers ────────────────────────────────────────────────────────────

def _row_to_sale(row: sqlite3.Row) -> SalesEvent:
    return SalesEvent(
        sale_id=row["sale_id"],
        org_id=row["org_id"],
        size_key=row["size_key"],
        quantity_sold=row["quantity_sold"],
        sold_at=parse_db_timestamp(row["sold_at"]),
    )


def _row_to_search(row: sqlite3.Row) -> SearchEvent:
    return SearchEvent(
        search_id=row["search_id"],
        org_id=row["org_id"],
        query=row["query"],
        requested_size=row["requested_size"],
        requested_quantity=row["requested_quantity"],
        result_count=row["result_count"],
        searched_at=parse_db_timestamp(row["searched_at"]),
    )


def _row_to_request(row: sqlite3.Row) -> CustomerRequest:
    return CustomerRequest(
        request_id=row["request_id"],
        org_id=row["org_id"],
        requested_size=row["requested_size"],
        requested_quantity=row["requested_quantity"],
        status=row["status"],
        customer_name=row["customer_name"],
        submitted_at=parse_db_timestamp(row["submitted_at"]),
    )
