"""
Aggregator deriving the gold-layer views from the curated store.

Two views are maintained:
- daily: bookings grouped by check-in date (count, revenue)
- city: revenue grouped by normalized hotel city (blank cities excluded)

A full recompute rebuilds both views from a point-in-time snapshot of the
curated store. An incremental recompute adds the contribution of newly
promoted records to the existing rows. The curated store is append-only, so
both scopes always produce the same rows. Curated amounts are cents bounded
by MAX_AMOUNT, so every sum fits the Decimal context precision and is exact
in any order of addition.
"""

import datetime
from decimal import Decimal
from typing import Any, Iterable, Literal

from pydantic import BaseModel, Field

from booking_pipeline.core.models import AggregateDrift, CityAggregate, CuratedRecord, DailyAggregate
from booking_pipeline.observability import metrics
from booking_pipeline.observability.logger import get_logger
from booking_pipeline.stores.base import AggregateStore, CuratedStore

logger = get_logger(__name__)


class FullRecompute(BaseModel):
    """Discard every aggregate row and rebuild from the curated store."""

    name: Literal["full"] = "full"


class IncrementalRecompute(BaseModel):
    """Fold newly promoted records into the existing aggregate rows."""

    name: Literal["incremental"] = "incremental"
    records: list[CuratedRecord] = Field(default_factory=list)

    @property
    def affected_keys(self) -> tuple[set[datetime.date], set[str]]:
        """Daily and city keys touched by the new records."""
        days = {r.check_in_date for r in self.records}
        cities = {r.hotel_city for r in self.records if r.hotel_city}
        return days, cities


RecomputeScope = FullRecompute | IncrementalRecompute


def daily_totals(records: Iterable[CuratedRecord]) -> dict[datetime.date, DailyAggregate]:
    """Group records by check-in date: count of records, sum of non-null amounts."""
    counts: dict[datetime.date, int] = {}
    revenue: dict[datetime.date, Decimal] = {}
    for record in records:
        key = record.check_in_date
        counts[key] = counts.get(key, 0) + 1
        revenue[key] = revenue.get(key, Decimal("0")) + (record.total_amount or Decimal("0"))
    return {
        key: DailyAggregate(date=key, total_bookings=counts[key], total_revenue=revenue[key])
        for key in counts
    }


def city_totals(records: Iterable[CuratedRecord]) -> dict[str, CityAggregate]:
    """Group records by normalized city: sum of non-null amounts. Blank cities are skipped."""
    revenue: dict[str, Decimal] = {}
    for record in records:
        if not record.hotel_city:
            continue
        key = record.hotel_city
        revenue[key] = revenue.get(key, Decimal("0")) + (record.total_amount or Decimal("0"))
    return {key: CityAggregate(city=key, total_revenue=value) for key, value in revenue.items()}


class Aggregator:
    """
    Keeps the aggregate store in sync with the curated store.

    Usage:
        aggregator = Aggregator(curated_store, aggregate_store)
        aggregator.recompute(IncrementalRecompute(records=batch.newly_promoted))
        aggregator.recompute(FullRecompute())
    """

    def __init__(self, curated_store: CuratedStore, aggregate_store: AggregateStore):
        """
        Initialize aggregator.

        Args:
            curated_store: Source of truth for the aggregates
            aggregate_store: Where the derived rows are kept
        """
        self.curated_store = curated_store
        self.aggregate_store = aggregate_store

    def recompute(self, scope: RecomputeScope | None = None) -> dict[str, Any]:
        """
        Refresh aggregates for the given scope (full when omitted).

        Returns:
            Dictionary with the scope name and the number of daily/city rows written
        """
        scope = scope or FullRecompute()

        with metrics.track_duration(metrics.aggregation_duration_seconds, scope=scope.name):
            if isinstance(scope, IncrementalRecompute):
                daily = daily_totals(scope.records)
                city = city_totals(scope.records)
                if daily or city:
                    self.aggregate_store.apply_increment(list(daily.values()), list(city.values()))
            else:
                snapshot = self.curated_store.snapshot()
                daily = daily_totals(snapshot)
                city = city_totals(snapshot)
                self.aggregate_store.replace(list(daily.values()), list(city.values()))

        logger.info(
            f"Aggregates refreshed ({scope.name}): {len(daily)} daily rows, {len(city)} city rows",
            extra={"scope": scope.name, "daily_rows": len(daily), "city_rows": len(city)},
        )

        return {"scope": scope.name, "daily_rows": len(daily), "city_rows": len(city)}

    def needs_rebuild(self) -> bool:
        """
        Cheap consistency check: daily booking counts must add up to the curated row count.

        A mismatch means an earlier run committed promotions but stopped before
        folding them into the aggregates, so an incremental refresh would not
        catch up.
        """
        counted = sum(row.total_bookings for row in self.aggregate_store.daily_rows())
        return counted != self.curated_store.count()

    def verify(self) -> AggregateDrift:
        """
        Compare stored aggregates against a fresh computation over the curated store.

        Returns:
            AggregateDrift listing every key whose stored row is missing, extra or different
        """
        snapshot = self.curated_store.snapshot()
        expected_daily = daily_totals(snapshot)
        expected_city = city_totals(snapshot)

        stored_daily = {row.date: row for row in self.aggregate_store.daily_rows()}
        stored_city = {row.city: row for row in self.aggregate_store.city_rows()}

        daily_keys = sorted(
            key for key in set(expected_daily) | set(stored_daily)
            if expected_daily.get(key) != stored_daily.get(key)
        )
        city_keys = sorted(
            key for key in set(expected_city) | set(stored_city)
            if expected_city.get(key) != stored_city.get(key)
        )

        drift = AggregateDrift(daily_keys=daily_keys, city_keys=city_keys)
        if not drift.in_sync:
            logger.warning(
                f"Aggregate drift detected: {len(daily_keys)} daily keys, {len(city_keys)} city keys",
                extra={"daily_keys": [str(k) for k in daily_keys], "city_keys": city_keys},
            )
        return drift
