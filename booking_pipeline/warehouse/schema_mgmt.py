"""
Schema management for the booking warehouse.

Owns the DDL of the three layers and the load tracker. ensure_schema() is
idempotent and runs before every Postgres-backed command.
"""

from typing import List

from booking_pipeline.observability.logger import get_logger

from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

TABLES = (
    "raw_booking",
    "load_marker",
    "curated_booking",
    "agg_daily_bookings",
    "agg_city_revenue",
)

SCHEMA_DDL = (
    """
    CREATE TABLE IF NOT EXISTS raw_booking (
        sequence     BIGSERIAL PRIMARY KEY,
        booking_id   TEXT NOT NULL,
        batch_id     TEXT NOT NULL,
        payload      JSONB NOT NULL,
        ingested_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_raw_booking_booking_id ON raw_booking (booking_id)",
    "CREATE INDEX IF NOT EXISTS idx_raw_booking_batch_id ON raw_booking (batch_id)",
    """
    CREATE TABLE IF NOT EXISTS load_marker (
        record_id   TEXT PRIMARY KEY,
        status      TEXT NOT NULL CHECK (status IN ('promoted', 'rejected')),
        violations  TEXT[] NOT NULL DEFAULT '{}',
        batch_id    TEXT,
        checksum    TEXT,
        marked_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_load_marker_status ON load_marker (status, marked_at)",
    """
    CREATE TABLE IF NOT EXISTS curated_booking (
        booking_id      TEXT PRIMARY KEY REFERENCES load_marker (record_id),
        hotel_id        TEXT,
        customer_id     TEXT,
        hotel_city      TEXT,
        customer_name   TEXT,
        customer_email  TEXT,
        check_in_date   DATE NOT NULL,
        check_out_date  DATE NOT NULL,
        room_type       TEXT,
        num_guests      INTEGER,
        total_amount    NUMERIC(12, 2) CHECK (total_amount >= 0),
        currency        TEXT,
        booking_status  TEXT,
        batch_id        TEXT,
        promoted_at     TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        CHECK (check_out_date >= check_in_date)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_curated_booking_check_in ON curated_booking (check_in_date)",
    """
    CREATE TABLE IF NOT EXISTS agg_daily_bookings (
        booking_date    DATE PRIMARY KEY,
        total_bookings  INTEGER NOT NULL CHECK (total_bookings >= 0),
        total_revenue   NUMERIC NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS agg_city_revenue (
        city           TEXT PRIMARY KEY,
        total_revenue  NUMERIC NOT NULL
    )
    """,
)


class SchemaManager:
    """
    Creates and inspects the warehouse tables.

    Usage:
        SchemaManager(pool).ensure_schema()
    """

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def ensure_schema(self) -> None:
        """Create every table and index that does not exist yet."""
        with self.pool.transaction() as cur:
            for statement in SCHEMA_DDL:
                cur.execute(statement)
        logger.info("Warehouse schema ensured", extra={"tables": list(TABLES)})

    def existing_tables(self) -> List[str]:
        """Pipeline tables present in the public schema."""
        rows = self.pool.execute_query(
            """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = 'public' AND table_name = ANY(%s)
            ORDER BY table_name
            """,
            (list(TABLES),),
        )
        return [row["table_name"] for row in rows]

    def truncate_all(self) -> None:
        """Empty every pipeline table. Used by tests."""
        with self.pool.transaction() as cur:
            cur.execute(
                "TRUNCATE TABLE curated_booking, load_marker, raw_booking, "
                "agg_daily_bookings, agg_city_revenue RESTART IDENTITY"
            )
