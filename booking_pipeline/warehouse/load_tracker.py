"""
PostgreSQL load tracker.

commit() runs one transaction per batch of decisions. Each marker is written
with INSERT ... ON CONFLICT DO NOTHING RETURNING, which makes the
check-and-set atomic across concurrent runs: a competing transaction blocks
on the primary key until the winner commits, then inserts nothing. The
curated row is only inserted when the marker insert returned a row.
"""

from contextlib import contextmanager
from typing import Iterable

from booking_pipeline.core.models import LoadMarker
from booking_pipeline.observability.logger import get_logger
from booking_pipeline.stores.base import LoadTracker, MarkerClaim, PromotionDecision

from .connection import DatabaseConnectionPool
from .curated_store import INSERT_CURATED, curated_params

logger = get_logger(__name__)

# Application-wide key for pg_advisory_lock
RUN_LOCK_KEY = 842_731_001

_MARKER_COLUMNS = "record_id, status, violations, batch_id, checksum, marked_at"


def _marker_from_row(row: dict) -> LoadMarker:
    return LoadMarker(**row)


class PostgresLoadTracker(LoadTracker):
    """load_marker table, gating inserts into curated_booking."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def lookup(self, record_id: str) -> LoadMarker | None:
        rows = self.pool.execute_query(
            f"SELECT {_MARKER_COLUMNS} FROM load_marker WHERE record_id = %s", (record_id,)
        )
        return _marker_from_row(rows[0]) if rows else None

    def lookup_many(self, record_ids: Iterable[str]) -> dict[str, LoadMarker]:
        ids = list(set(record_ids))
        if not ids:
            return {}
        rows = self.pool.execute_query(
            f"SELECT {_MARKER_COLUMNS} FROM load_marker WHERE record_id = ANY(%s)", (ids,)
        )
        return {row["record_id"]: _marker_from_row(row) for row in rows}

    def commit(self, decisions: list[PromotionDecision]) -> list[MarkerClaim]:
        if not decisions:
            return []

        claims: list[MarkerClaim] = []
        with self.pool.transaction() as cur:
            for decision in decisions:
                marker = decision.marker
                cur.execute(
                    f"""
                    INSERT INTO load_marker ({_MARKER_COLUMNS})
                    VALUES (%s, %s, %s, %s, %s, %s)
                    ON CONFLICT (record_id) DO NOTHING
                    RETURNING record_id
                    """,
                    (
                        marker.record_id,
                        marker.status,
                        [kind.value for kind in marker.violations],
                        marker.batch_id,
                        marker.checksum,
                        marker.marked_at,
                    ),
                )
                if cur.fetchone() is None:
                    cur.execute(
                        f"SELECT {_MARKER_COLUMNS} FROM load_marker WHERE record_id = %s",
                        (marker.record_id,),
                    )
                    claims.append(MarkerClaim(claimed=False, marker=_marker_from_row(cur.fetchone())))
                    continue

                if decision.curated is not None:
                    cur.execute(INSERT_CURATED, curated_params(decision.curated))
                claims.append(MarkerClaim(claimed=True, marker=marker))

        logger.debug(
            f"Committed {sum(1 for c in claims if c.claimed)} of {len(decisions)} markers",
            extra={"decisions": len(decisions)},
        )
        return claims

    def markers(self, status: str | None = None, limit: int | None = None) -> list[LoadMarker]:
        sql = f"SELECT {_MARKER_COLUMNS} FROM load_marker"
        params: list = []
        if status is not None:
            sql += " WHERE status = %s"
            params.append(status)
        sql += " ORDER BY marked_at, record_id"
        if limit is not None:
            sql += " LIMIT %s"
            params.append(limit)
        rows = self.pool.execute_query(sql, tuple(params))
        return [_marker_from_row(row) for row in rows]

    def status_counts(self) -> dict[str, int]:
        counts = {"promoted": 0, "rejected": 0}
        rows = self.pool.execute_query(
            "SELECT status, COUNT(*) AS n FROM load_marker GROUP BY status"
        )
        for row in rows:
            counts[row["status"]] = row["n"]
        return counts

    @contextmanager
    def exclusive_run(self):
        """
        Hold a session-level advisory lock for the duration of a run.

        A second process calling exclusive_run() blocks until the first one
        releases the lock.
        """
        with self.pool.get_connection() as conn:
            conn.execute("SELECT pg_advisory_lock(%s)", (RUN_LOCK_KEY,))
            conn.commit()
            logger.debug("Acquired pipeline run lock")
            try:
                yield self
            finally:
                conn.execute("SELECT pg_advisory_unlock(%s)", (RUN_LOCK_KEY,))
                conn.commit()
                logger.debug("Released pipeline run lock")
