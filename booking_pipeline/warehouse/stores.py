"""
Postgres-backed store bundle.
"""

from booking_pipeline.config import DatabaseSettings

from .aggregate_store import PostgresAggregateStore
from .connection import DatabaseConnectionPool
from .curated_store import PostgresCuratedStore
from .load_tracker import PostgresLoadTracker
from .raw_store import PostgresRawStore
from .schema_mgmt import SchemaManager


class PostgresStores:
    """
    The four stores sharing one connection pool.

    Usage:
        with PostgresStores.connect(settings) as stores:
            pipeline = BookingPipeline.from_stores(stores)
    """

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool
        self.raw = PostgresRawStore(pool)
        self.curated = PostgresCuratedStore(pool)
        self.tracker = PostgresLoadTracker(pool)
        self.aggregates = PostgresAggregateStore(pool)

    @classmethod
    def connect(cls, settings: DatabaseSettings) -> "PostgresStores":
        """Open a pool and make sure the schema exists."""
        pool = DatabaseConnectionPool(**settings.connection_kwargs())
        pool.open()
        try:
            SchemaManager(pool).ensure_schema()
        except Exception:
            pool.close()
            raise
        return cls(pool)

    def close(self) -> None:
        self.pool.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
