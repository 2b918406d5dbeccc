"""
PostgreSQL raw store (bronze layer).

Rows are kept as a JSONB payload of text values; sequence is a BIGSERIAL so
ingestion order survives across batches and processes.
"""

from typing import Any, Iterable, Mapping

from psycopg.types.json import Jsonb

from booking_pipeline.core.models import RawRecord
from booking_pipeline.observability.logger import get_logger
from booking_pipeline.stores.base import IngestResult, RawStore, build_payload, row_identifier

from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

_SELECT_RAW = "SELECT sequence, booking_id, batch_id, payload, ingested_at FROM raw_booking"


class PostgresRawStore(RawStore):
    """Append-only raw_booking table."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def append(self, rows: Iterable[Mapping[str, Any]], batch_id: str) -> IngestResult:
        result = IngestResult(batch_id=batch_id)
        params = []
        for row in rows:
            payload = build_payload(row)
            booking_id = row_identifier(payload)
            if booking_id is None:
                result.malformed += 1
                continue
            params.append((booking_id, batch_id, Jsonb(payload)))

        if params:
            with self.pool.transaction() as cur:
                cur.executemany(
                    "INSERT INTO raw_booking (booking_id, batch_id, payload) VALUES (%s, %s, %s)",
                    params,
                )
        result.accepted = len(params)
        return result

    def scan(self, batch_id: str | None = None) -> list[RawRecord]:
        if batch_id is None:
            rows = self.pool.execute_query(f"{_SELECT_RAW} ORDER BY sequence")
        else:
            rows = self.pool.execute_query(
                f"{_SELECT_RAW} WHERE batch_id = %s ORDER BY sequence", (batch_id,)
            )
        return [RawRecord(**row) for row in rows]

    def occurrences(self, booking_id: str) -> list[RawRecord]:
        rows = self.pool.execute_query(
            f"{_SELECT_RAW} WHERE booking_id = %s ORDER BY sequence", (booking_id,)
        )
        return [RawRecord(**row) for row in rows]

    def count(self, batch_id: str | None = None) -> int:
        if batch_id is None:
            rows = self.pool.execute_query("SELECT COUNT(*) AS n FROM raw_booking")
        else:
            rows = self.pool.execute_query(
                "SELECT COUNT(*) AS n FROM raw_booking WHERE batch_id = %s", (batch_id,)
            )
        return rows[0]["n"]
