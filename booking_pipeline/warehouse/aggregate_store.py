"""
PostgreSQL aggregate store (gold layer).
"""

from datetime import date

from booking_pipeline.core.models import CityAggregate, DailyAggregate
from booking_pipeline.stores.base import AggregateStore

from .connection import DatabaseConnectionPool

_INSERT_DAILY = (
    "INSERT INTO agg_daily_bookings (booking_date, total_bookings, total_revenue) "
    "VALUES (%s, %s, %s)"
)
_INSERT_CITY = "INSERT INTO agg_city_revenue (city, total_revenue) VALUES (%s, %s)"


class PostgresAggregateStore(AggregateStore):
    """agg_daily_bookings and agg_city_revenue tables."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def daily_rows(self, start: date | None = None, end: date | None = None) -> list[DailyAggregate]:
        sql = "SELECT booking_date AS date, total_bookings, total_revenue FROM agg_daily_bookings"
        clauses = []
        params: list = []
        if start is not None:
            clauses.append("booking_date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("booking_date <= %s")
            params.append(end)
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY booking_date"
        rows = self.pool.execute_query(sql, tuple(params))
        return [DailyAggregate(**row) for row in rows]

    def city_rows(self) -> list[CityAggregate]:
        rows = self.pool.execute_query(
            "SELECT city, total_revenue FROM agg_city_revenue ORDER BY total_revenue DESC, city"
        )
        return [CityAggregate(**row) for row in rows]

    def replace(self, daily: list[DailyAggregate], city: list[CityAggregate]) -> None:
        with self.pool.transaction() as cur:
            cur.execute("DELETE FROM agg_daily_bookings")
            cur.execute("DELETE FROM agg_city_revenue")
            if daily:
                cur.executemany(
                    _INSERT_DAILY, [(r.date, r.total_bookings, r.total_revenue) for r in daily]
                )
            if city:
                cur.executemany(_INSERT_CITY, [(r.city, r.total_revenue) for r in city])

    def apply_increment(self, daily: list[DailyAggregate], city: list[CityAggregate]) -> None:
        with self.pool.transaction() as cur:
            if daily:
                cur.executemany(
                    _INSERT_DAILY + """
                    ON CONFLICT (booking_date) DO UPDATE SET
                        total_bookings = agg_daily_bookings.total_bookings + EXCLUDED.total_bookings,
                        total_revenue = agg_daily_bookings.total_revenue + EXCLUDED.total_revenue
                    """,
                    [(r.date, r.total_bookings, r.total_revenue) for r in daily],
                )
            if city:
                cur.executemany(
                    _INSERT_CITY + """
                    ON CONFLICT (city) DO UPDATE SET
                        total_revenue = agg_city_revenue.total_revenue + EXCLUDED.total_revenue
                    """,
                    [(r.city, r.total_revenue) for r in city],
                )
