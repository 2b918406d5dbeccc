"""
In-memory store implementations.

Used by unit tests and dry runs. Every store guards its state with a lock so
that promotion can run from several threads; the load tracker takes its own
lock before the curated store's, and nothing takes them in the other order.
"""

import threading
from contextlib import contextmanager
from datetime import date
from typing import Any, Iterable, Mapping

from booking_pipeline.core.models import CityAggregate, CuratedRecord, DailyAggregate, LoadMarker, RawRecord
from booking_pipeline.observability.logger import get_logger

from .base import (
    AggregateStore,
    CuratedStore,
    IngestResult,
    LoadTracker,
    MarkerClaim,
    PromotionDecision,
    RawStore,
    build_payload,
    row_identifier,
)

logger = get_logger(__name__)


class MemoryRawStore(RawStore):
    """Append-only list of raw records."""

    def __init__(self):
        self._records: list[RawRecord] = []
        self._lock = threading.Lock()

    def append(self, rows: Iterable[Mapping[str, Any]], batch_id: str) -> IngestResult:
        result = IngestResult(batch_id=batch_id)
        staged = []
        for row in rows:
            payload = build_payload(row)
            booking_id = row_identifier(payload)
            if booking_id is None:
                result.malformed += 1
                continue
            staged.append((booking_id, payload))

        with self._lock:
            start = len(self._records)
            for offset, (booking_id, payload) in enumerate(staged):
                self._records.append(
                    RawRecord(booking_id=booking_id, batch_id=batch_id, sequence=start + offset, payload=payload)
                )
        result.accepted = len(staged)
        return result

    def scan(self, batch_id: str | None = None) -> list[RawRecord]:
        with self._lock:
            records = list(self._records)
        if batch_id is None:
            return records
        return [r for r in records if r.batch_id == batch_id]

    def occurrences(self, booking_id: str) -> list[RawRecord]:
        with self._lock:
            return [r for r in self._records if r.booking_id == booking_id]

    def count(self, batch_id: str | None = None) -> int:
        return len(self.scan(batch_id))


class MemoryCuratedStore(CuratedStore):
    """Dictionary of curated records keyed by booking_id."""

    def __init__(self):
        self._records: dict[str, CuratedRecord] = {}
        self._lock = threading.Lock()

    def get(self, booking_id: str) -> CuratedRecord | None:
        with self._lock:
            return self._records.get(booking_id)

    def snapshot(self) -> list[CuratedRecord]:
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda r: r.booking_id)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def _insert_many(self, records: list[CuratedRecord]) -> None:
        """Insert rows the load tracker has already claimed."""
        with self._lock:
            for record in records:
                if record.booking_id in self._records:
                    raise RuntimeError(f"Curated record {record.booking_id} already exists")
            for record in records:
                self._records[record.booking_id] = record


class MemoryLoadTracker(LoadTracker):
    """Marker dictionary gating writes into a MemoryCuratedStore."""

    def __init__(self, curated_store: MemoryCuratedStore):
        """
        Initialize load tracker.

        Args:
            curated_store: The curated store this tracker writes promoted rows into
        """
        self.curated_store = curated_store
        self._markers: dict[str, LoadMarker] = {}
        self._lock = threading.Lock()
        self._run_lock = threading.Lock()

    def lookup(self, record_id: str) -> LoadMarker | None:
        with self._lock:
            return self._markers.get(record_id)

    def lookup_many(self, record_ids: Iterable[str]) -> dict[str, LoadMarker]:
        with self._lock:
            return {rid: self._markers[rid] for rid in set(record_ids) if rid in self._markers}

    def commit(self, decisions: list[PromotionDecision]) -> list[MarkerClaim]:
        claims: list[MarkerClaim] = []
        with self._lock:
            staged: dict[str, LoadMarker] = {}
            inserts: list[CuratedRecord] = []
            for decision in decisions:
                record_id = decision.marker.record_id
                existing = self._markers.get(record_id) or staged.get(record_id)
                if existing is not None:
                    claims.append(MarkerClaim(claimed=False, marker=existing))
                    continue
                staged[record_id] = decision.marker
                if decision.curated is not None:
                    inserts.append(decision.curated)
                claims.append(MarkerClaim(claimed=True, marker=decision.marker))

            # Curated rows first: if they cannot be inserted no marker is written
            self.curated_store._insert_many(inserts)
            self._markers.update(staged)

        logger.debug(f"Committed {len(staged)} markers, {len(inserts)} curated rows")
        return claims

    def markers(self, status: str | None = None, limit: int | None = None) -> list[LoadMarker]:
        with self._lock:
            found = [m for m in self._markers.values() if status is None or m.status == status]
        found.sort(key=lambda m: (m.marked_at, m.record_id))
        return found[:limit] if limit is not None else found

    def status_counts(self) -> dict[str, int]:
        counts = {"promoted": 0, "rejected": 0}
        with self._lock:
            for marker in self._markers.values():
                counts[marker.status] += 1
        return counts

    @contextmanager
    def exclusive_run(self):
        with self._run_lock:
            yield self


class MemoryAggregateStore(AggregateStore):
    """Daily and city rows held in dictionaries."""

    def __init__(self):
        self._daily: dict[date, DailyAggregate] = {}
        self._city: dict[str, CityAggregate] = {}
        self._lock = threading.Lock()

    def daily_rows(self, start: date | None = None, end: date | None = None) -> list[DailyAggregate]:
        with self._lock:
            rows = list(self._daily.values())
        rows = [
            r for r in rows
            if (start is None or r.date >= start) and (end is None or r.date <= end)
        ]
        return sorted(rows, key=lambda r: r.date)

    def city_rows(self) -> list[CityAggregate]:
        with self._lock:
            rows = list(self._city.values())
        return sorted(rows, key=lambda r: (-r.total_revenue, r.city))

    def replace(self, daily: list[DailyAggregate], city: list[CityAggregate]) -> None:
        with self._lock:
            self._daily = {row.date: row for row in daily}
            self._city = {row.city: row for row in city}

    def apply_increment(self, daily: list[DailyAggregate], city: list[CityAggregate]) -> None:
        with self._lock:
            for row in daily:
                current = self._daily.get(row.date)
                if current is None:
                    self._daily[row.date] = row
                else:
                    self._daily[row.date] = DailyAggregate(
                        date=row.date,
                        total_bookings=current.total_bookings + row.total_bookings,
                        total_revenue=current.total_revenue + row.total_revenue,
                    )
            for row in city:
                current = self._city.get(row.city)
                total = row.total_revenue if current is None else current.total_revenue + row.total_revenue
                self._city[row.city] = CityAggregate(city=row.city, total_revenue=total)


class MemoryStores:
    """Bundle of in-memory stores wired together (tracker writes into curated)."""

    def __init__(self):
        self.raw = MemoryRawStore()
        self.curated = MemoryCuratedStore()
        self.tracker = MemoryLoadTracker(self.curated)
        self.aggregates = MemoryAggregateStore()

    def __repr__(self) -> str:
        return (
            f"MemoryStores(raw={self.raw.count()}, curated={self.curated.count()}, "
            f"markers={sum(self.tracker.status_counts().values())})"
        )


__all__ = [
    "MemoryRawStore",
    "MemoryCuratedStore",
    "MemoryLoadTracker",
    "MemoryAggregateStore",
    "MemoryStores",
]
