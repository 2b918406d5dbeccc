"""
Booking pipeline orchestration.

Flow of one increment: raw store -> classify -> normalize -> curated store
(through the load tracker) -> aggregates. Promotion and aggregation run
under the tracker's exclusive_run() lock, so aggregation always reads a
curated store that no other run is writing to.
"""

import time
from typing import Any, Iterable, Mapping, Optional

from booking_pipeline.core.aggregation import Aggregator, FullRecompute, IncrementalRecompute
from booking_pipeline.core.errors import PipelineError
from booking_pipeline.core.models import ExitStatus, RunSummary
from booking_pipeline.core.normalize import Normalizer
from booking_pipeline.core.rules import RulesetConfig, ValidationRuleset
from booking_pipeline.observability import metrics
from booking_pipeline.observability.logger import get_logger, log_operation
from booking_pipeline.stores.base import AggregateStore, CuratedStore, IngestResult, LoadTracker, RawStore
from booking_pipeline.utils.validation import validate_batch_id

from .promotion import PromotionController

logger = get_logger(__name__)


class BookingPipeline:
    """
    The scheduled "run pipeline increment" job.

    Usage:
        stores = MemoryStores()
        pipeline = BookingPipeline.from_stores(stores)
        pipeline.ingest(rows, batch_id="bookings_2026-01-11")
        summary = pipeline.run_increment()
        sys.exit(summary.exit_status)
    """

    def __init__(
        self,
        raw_store: RawStore,
        tracker: LoadTracker,
        curated_store: CuratedStore,
        aggregate_store: AggregateStore,
        ruleset_config: Optional[RulesetConfig] = None,
        max_workers: int = 1,
    ):
        """
        Initialize booking pipeline.

        Args:
            raw_store: Bronze layer
            tracker: Load tracker writing into curated_store
            curated_store: Silver layer
            aggregate_store: Gold layer
            ruleset_config: Date layouts, status table, disabled rules
            max_workers: Threads for classify/normalize
        """
        self.raw_store = raw_store
        self.tracker = tracker
        self.curated_store = curated_store
        self.aggregate_store = aggregate_store

        self.ruleset_config = ruleset_config or RulesetConfig()
        self.ruleset = ValidationRuleset.from_config(self.ruleset_config)
        self.normalizer = Normalizer(self.ruleset_config, self.ruleset)
        self.controller = PromotionController(
            self.ruleset, self.normalizer, tracker, curated_store, max_workers=max_workers
        )
        self.aggregator = Aggregator(curated_store, aggregate_store)

    @classmethod
    def from_stores(cls, stores: Any, ruleset_config: Optional[RulesetConfig] = None, max_workers: int = 1):
        """Build from a store bundle (MemoryStores or PostgresStores)."""
        return cls(
            raw_store=stores.raw,
            tracker=stores.tracker,
            curated_store=stores.curated,
            aggregate_store=stores.aggregates,
            ruleset_config=ruleset_config,
            max_workers=max_workers,
        )

    def ingest(self, rows: Iterable[Mapping[str, Any]], batch_id: str) -> IngestResult:
        """
        Append a batch of rows to the raw store.

        Args:
            rows: Mappings of column name to raw value
            batch_id: Identifier of the ingestion batch

        Returns:
            IngestResult with accepted and malformed counts
        """
        validate_batch_id(batch_id)
        with log_operation("Raw ingestion", logger=logger, batch_id=batch_id):
            result = self.raw_store.append(rows, batch_id)

        metrics.record_ingest(result.accepted, result.malformed)
        if result.malformed:
            logger.warning(
                f"Dropped {result.malformed} rows without booking_id from batch {batch_id}",
                extra={"batch_id": batch_id, "malformed": result.malformed},
            )
        return result

    def run_increment(self, batch_id: Optional[str] = None, full_refresh: bool = False) -> RunSummary:
        """
        Promote pending raw records and refresh the aggregates.

        Safe to re-run at any time: already-marked identifiers are skipped, so
        an abandoned run can be restarted from the top.

        Args:
            batch_id: Only consider this raw batch (every raw record when None)
            full_refresh: Rebuild aggregates from scratch instead of incrementally

        Returns:
            RunSummary; exit_status is REJECTIONS when any record was newly rejected

        Raises:
            PipelineError: On infrastructure failure (nothing partial is committed)
        """
        if batch_id is not None:
            validate_batch_id(batch_id)

        start = time.perf_counter()
        try:
            with log_operation("Pipeline increment", logger=logger, batch_id=batch_id):
                with self.tracker.exclusive_run():
                    rebuild = full_refresh or self.aggregator.needs_rebuild()
                    raw_records = self.raw_store.scan(batch_id)
                    batch = self.controller.promote_batch(raw_records)

                    if rebuild:
                        self.aggregator.recompute(FullRecompute())
                        aggregation = "full"
                    elif batch.newly_promoted:
                        self.aggregator.recompute(IncrementalRecompute(records=batch.newly_promoted))
                        aggregation = "incremental"
                    else:
                        aggregation = "none"
        except PipelineError:
            metrics.increment_counter(metrics.runs_total, 1, exit_status=ExitStatus.FATAL.name.lower())
            raise

        summary = RunSummary(
            batch_id=batch_id,
            total_records=len(raw_records),
            promoted=batch.promoted,
            rejected=batch.rejected,
            skipped=batch.skipped,
            conflicting_duplicates=batch.conflicting_duplicates,
            rejections_by_reason=batch.rejections_by_reason(),
            violations_by_kind=batch.violations_by_kind(),
            aggregation=aggregation,
            duration_seconds=round(time.perf_counter() - start, 3),
        )
        metrics.record_run(summary)
        metrics.set_gauge(metrics.curated_records, self.curated_store.count())

        logger.info(
            f"Run finished with {summary.exit_status.name}",
            extra=summary.model_dump(),
        )
        return summary
