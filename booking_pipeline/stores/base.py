"""
Store interfaces for the three pipeline layers and the load tracker.

Each store is an explicit object passed into the components that use it.
Two implementations exist: in-memory (stores.memory) for tests and dry runs,
and PostgreSQL (warehouse.*) for scheduled runs.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, model_validator

from booking_pipeline.core.models import (
    RAW_FIELDS,
    CityAggregate,
    CuratedRecord,
    DailyAggregate,
    LoadMarker,
    RawRecord,
)


class IngestResult(BaseModel):
    """Rows accepted into and dropped at the raw store boundary."""

    batch_id: str
    accepted: int = 0
    malformed: int = 0


class PromotionDecision(BaseModel):
    """A marker to write, plus the curated row to insert when the record was promoted."""

    marker: LoadMarker
    curated: CuratedRecord | None = None

    @model_validator(mode="after")
    def check_consistency(self) -> "PromotionDecision":
        if self.marker.promoted != (self.curated is not None):
            raise ValueError("promoted markers need a curated record, rejected markers must not have one")
        if self.curated is not None and self.curated.booking_id != self.marker.record_id:
            raise ValueError("curated booking_id does not match marker record_id")
        return self


class MarkerClaim(BaseModel):
    """Result of the check-and-set for one decision."""

    claimed: bool
    marker: LoadMarker


def build_payload(row: Mapping[str, Any]) -> dict[str, str]:
    """
    Turn an ingested row into a raw payload: every value as text, None as "".

    Columns outside RAW_FIELDS are kept so nothing received is lost.
    """
    payload = {name: "" for name in RAW_FIELDS}
    for key, value in row.items():
        payload[str(key)] = "" if value is None else str(value)
    return payload


def row_identifier(payload: Mapping[str, str]) -> str | None:
    """Trimmed booking_id, None when blank."""
    booking_id = (payload.get("booking_id") or "").strip()
    return booking_id or None


class RawStore(ABC):
    """Append-only holder of booking rows exactly as received."""

    @abstractmethod
    def append(self, rows: Iterable[Mapping[str, Any]], batch_id: str) -> IngestResult:
        """
        Store rows as RawRecords.

        Rows without a booking_id cannot be tracked and are dropped (counted as malformed).
        """

    @abstractmethod
    def scan(self, batch_id: str | None = None) -> list[RawRecord]:
        """Raw records in ingestion order, optionally for one batch."""

    @abstractmethod
    def occurrences(self, booking_id: str) -> list[RawRecord]:
        """Every raw occurrence of an identifier, in ingestion order."""

    @abstractmethod
    def count(self, batch_id: str | None = None) -> int:
        """Number of raw records, optionally for one batch."""


class CuratedStore(ABC):
    """Validated, normalized, deduplicated bookings. Written only through a LoadTracker."""

    @abstractmethod
    def get(self, booking_id: str) -> CuratedRecord | None:
        """Curated record for an identifier."""

    @abstractmethod
    def snapshot(self) -> list[CuratedRecord]:
        """Point-in-time copy of every curated record, ordered by booking_id."""

    @abstractmethod
    def count(self) -> int:
        """Number of curated records."""

    def query(
        self,
        city: str | None = None,
        status: str | None = None,
        start: date | None = None,
        end: date | None = None,
        limit: int | None = None,
    ) -> list[CuratedRecord]:
        """
        Read-only filter over the clean record view.

        Args:
            city: Exact normalized city
            status: Exact booking status
            start: Earliest check-in date (inclusive)
            end: Latest check-in date (inclusive)
            limit: Maximum number of rows

        Returns:
            Matching records ordered by check-in date, then booking_id
        """
        rows = [
            r for r in self.snapshot()
            if (city is None or r.hotel_city == city)
            and (status is None or r.booking_status == status)
            and (start is None or r.check_in_date >= start)
            and (end is None or r.check_in_date <= end)
        ]
        rows.sort(key=lambda r: (r.check_in_date, r.booking_id))
        return rows[:limit] if limit is not None else rows


class LoadTracker(ABC):
    """
    Promotion bookkeeping and the gate between the raw and curated layers.

    commit() is the only write path into the curated store. For every decision
    it atomically checks for an existing marker and, when none exists, writes
    the marker and the curated row together (first writer wins). A batch of
    decisions commits all-or-nothing.
    """

    @abstractmethod
    def lookup(self, record_id: str) -> LoadMarker | None:
        """Marker for an identifier."""

    def lookup_many(self, record_ids: Iterable[str]) -> dict[str, LoadMarker]:
        """Markers for several identifiers, keyed by record_id."""
        found = {}
        for record_id in set(record_ids):
            marker = self.lookup(record_id)
            if marker is not None:
                found[record_id] = marker
        return found

    @abstractmethod
    def commit(self, decisions: list[PromotionDecision]) -> list[MarkerClaim]:
        """
        Check-and-set markers and insert curated rows, in order, atomically.

        Returns:
            One MarkerClaim per decision; claimed=False carries the existing marker
        """

    @abstractmethod
    def markers(self, status: str | None = None, limit: int | None = None) -> list[LoadMarker]:
        """Markers ordered by marked_at, optionally filtered by status."""

    @abstractmethod
    def status_counts(self) -> dict[str, int]:
        """Number of markers per status."""

    @abstractmethod
    def exclusive_run(self) -> AbstractContextManager:
        """Serialize pipeline runs (promotion + aggregation) against this tracker."""


class AggregateStore(ABC):
    """Cache of the daily and city aggregate rows."""

    @abstractmethod
    def daily_rows(self, start: date | None = None, end: date | None = None) -> list[DailyAggregate]:
        """Daily rows ordered by date, optionally within an inclusive range."""

    @abstractmethod
    def city_rows(self) -> list[CityAggregate]:
        """City rows ordered by revenue descending, then city."""

    @abstractmethod
    def replace(self, daily: list[DailyAggregate], city: list[CityAggregate]) -> None:
        """Atomically discard every row and store the given ones."""

    @abstractmethod
    def apply_increment(self, daily: list[DailyAggregate], city: list[CityAggregate]) -> None:
        """Atomically add the given measures to existing rows, creating missing ones."""
