"""
Read-only reporting views over the curated and aggregate layers.

The dashboard reads through these projections only; nothing here writes to
a store, and nothing exposes raw (unvalidated) values.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from booking_pipeline.core.models import HARD_VIOLATIONS, CityAggregate, CuratedRecord, DailyAggregate, LoadMarker, ViolationKind
from booking_pipeline.stores.base import AggregateStore, CuratedStore, LoadTracker, RawStore
from booking_pipeline.utils.validation import validate_date_range, validate_limit


class QualityReport(BaseModel):
    """
    Data quality counters.

    Attributes:
        total_raw: Raw records stored (duplicates included)
        promoted: Identifiers promoted into the curated store
        rejected: Identifiers rejected by a hard rule
        quality_rate: promoted / total_raw (0.0 for an empty raw store)
        rejections_by_reason: Rejected identifiers per hard violation
    """

    total_raw: int = 0
    promoted: int = 0
    rejected: int = 0
    quality_rate: float = 0.0
    rejections_by_reason: dict[str, int] = Field(default_factory=dict)

    @property
    def pending(self) -> int:
        """Raw records not accounted for by a marker (duplicates and unprocessed rows)."""
        return max(self.total_raw - self.promoted - self.rejected, 0)


class ReportingViews:
    """
    Clean record view, daily and city aggregate views, and quality figures.

    Usage:
        views = ReportingViews(stores.raw, stores.tracker, stores.curated, stores.aggregates)
        views.city_aggregates(top_n=5)
        views.quality_report().quality_rate
    """

    def __init__(
        self,
        raw_store: RawStore,
        tracker: LoadTracker,
        curated_store: CuratedStore,
        aggregate_store: AggregateStore,
    ):
        self.raw_store = raw_store
        self.tracker = tracker
        self.curated_store = curated_store
        self.aggregate_store = aggregate_store

    @classmethod
    def from_stores(cls, stores) -> "ReportingViews":
        return cls(stores.raw, stores.tracker, stores.curated, stores.aggregates)

    def clean_records(
        self,
        city: Optional[str] = None,
        status: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[CuratedRecord]:
        """Curated records filtered by city, status and check-in date range."""
        validate_date_range(start, end)
        if limit is not None:
            validate_limit(limit)
        return self.curated_store.query(city=city, status=status, start=start, end=end, limit=limit)

    def daily_aggregates(self, start: Optional[date] = None, end: Optional[date] = None) -> list[DailyAggregate]:
        validate_date_range(start, end)
        return self.aggregate_store.daily_rows(start, end)

    def city_aggregates(self, top_n: Optional[int] = None) -> list[CityAggregate]:
        """City revenue, highest first; top_n limits the number of cities."""
        rows = self.aggregate_store.city_rows()
        if top_n is not None:
            validate_limit(top_n, "top_n")
            rows = rows[:top_n]
        return rows

    def total_revenue(self) -> Decimal:
        return sum((row.total_revenue for row in self.aggregate_store.daily_rows()), Decimal("0"))

    def booking_count(self) -> int:
        return self.curated_store.count()

    def rejections(self, reason: Optional[str] = None, limit: int = 100) -> list[LoadMarker]:
        """
        Rejected identifiers with their violations, oldest first.

        Args:
            reason: Only markers carrying this hard violation (e.g. DATE_ORDER_INVALID)
            limit: Maximum number of markers

        Raises:
            ValidationError: If limit is not positive
            ValueError: If reason is not a known violation kind
        """
        validate_limit(limit)
        if reason is None:
            return self.tracker.markers(status="rejected", limit=limit)

        kind = ViolationKind(reason)
        markers = self.tracker.markers(status="rejected")
        return [m for m in markers if kind in m.violations][:limit]

    def quality_report(self) -> QualityReport:
        counts = self.tracker.status_counts()
        total_raw = self.raw_store.count()

        by_reason: dict[str, int] = {}
        for marker in self.tracker.markers(status="rejected"):
            for kind in marker.violations:
                if kind in HARD_VIOLATIONS:
                    by_reason[kind.value] = by_reason.get(kind.value, 0) + 1

        promoted = counts.get("promoted", 0)
        return QualityReport(
            total_raw=total_raw,
            promoted=promoted,
            rejected=counts.get("rejected", 0),
            quality_rate=round(promoted / total_raw, 4) if total_raw else 0.0,
            rejections_by_reason=by_reason,
        )
