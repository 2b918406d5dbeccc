"""
PostgreSQL curated store (silver layer).

Read side only: rows are inserted by PostgresLoadTracker.commit() in the same
transaction as their load marker.
"""

from datetime import date

from booking_pipeline.core.models import CuratedRecord
from booking_pipeline.stores.base import CuratedStore

from .connection import DatabaseConnectionPool

CURATED_COLUMNS = (
    "booking_id",
    "hotel_id",
    "customer_id",
    "hotel_city",
    "customer_name",
    "customer_email",
    "check_in_date",
    "check_out_date",
    "room_type",
    "num_guests",
    "total_amount",
    "currency",
    "booking_status",
    "batch_id",
    "promoted_at",
)

_SELECT_CURATED = f"SELECT {', '.join(CURATED_COLUMNS)} FROM curated_booking"

INSERT_CURATED = (
    f"INSERT INTO curated_booking ({', '.join(CURATED_COLUMNS)}) "
    f"VALUES ({', '.join(['%s'] * len(CURATED_COLUMNS))})"
)


def curated_params(record: CuratedRecord) -> tuple:
    """Positional parameters for INSERT_CURATED."""
    return tuple(getattr(record, column) for column in CURATED_COLUMNS)


class PostgresCuratedStore(CuratedStore):
    """curated_booking table."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def get(self, booking_id: str) -> CuratedRecord | None:
        rows = self.pool.execute_query(f"{_SELECT_CURATED} WHERE booking_id = %s", (booking_id,))
        return CuratedRecord(**rows[0]) if rows else None

    def snapshot(self) -> list[CuratedRecord]:
        # One statement, so the rows come from a single MVCC snapshot
        rows = self.pool.execute_query(f"{_SELECT_CURATED} ORDER BY booking_id")
        return [CuratedRecord(**row) for row in rows]

    def count(self) -> int:
        rows = self.pool.execute_query("SELECT COUNT(*) AS n FROM curated_booking")
        return rows[0]["n"]

    def query(
        self,
        city: str | None = None,
        status: str | None = None,
        start: date | None = None,
        end: date | None = None,
        limit: int | None = None,
    ) -> list[CuratedRecord]:
        clauses = []
        params: list = []
        if city is not None:
            clauses.append("hotel_city = %s")
            params.append(city)
        if status is not None:
            clauses.append("booking_status = %s")
            params.append(status)
        if start is not None:
            clauses.append("check_in_date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("check_in_date <= %s")
            params.append(end)

        sql = _SELECT_CURATED
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY check_in_date, booking_id"
        if limit is not None:
            sql += " LIMIT %s"
            params.append(limit)

        rows = self.pool.execute_query(sql, tuple(params))
        return [CuratedRecord(**row) for row in rows]
