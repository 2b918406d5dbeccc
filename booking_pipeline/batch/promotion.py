"""
Promotion of raw records into the curated store.

Per-record work (classify, normalize) is pure and may run on a thread pool.
Durability is pushed to one LoadTracker.commit() per pass, which writes the
markers and curated rows atomically and resolves races between concurrent
passes (first writer wins).
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

from booking_pipeline.core.models import (
    BatchPromotion,
    CuratedRecord,
    LoadMarker,
    PromotionResult,
    RawRecord,
)
from booking_pipeline.core.normalize import Normalizer
from booking_pipeline.core.rules import ValidationRuleset
from booking_pipeline.observability.logger import get_logger
from booking_pipeline.stores.base import CuratedStore, LoadTracker, PromotionDecision

logger = get_logger(__name__)


class PromotionController:
    """
    Moves raw records into the curated store at most once per identifier.

    Usage:
        controller = PromotionController(ruleset, normalizer, tracker, curated_store)
        batch = controller.promote_batch(raw_store.scan())
        print(batch.promoted, batch.rejected, batch.skipped)
    """

    def __init__(
        self,
        ruleset: ValidationRuleset,
        normalizer: Normalizer,
        tracker: LoadTracker,
        curated_store: CuratedStore,
        max_workers: int = 1,
    ):
        """
        Initialize promotion controller.

        Args:
            ruleset: Classifies raw records
            normalizer: Builds curated records for eligible ones
            tracker: Marker map and the only write path to the curated store
            curated_store: Read to return previously promoted records
            max_workers: Threads for classify/normalize (1 = run inline)
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.ruleset = ruleset
        self.normalizer = normalizer
        self.tracker = tracker
        self.curated_store = curated_store
        self.max_workers = max_workers

    def evaluate(self, record: RawRecord) -> PromotionDecision:
        """Classify and (when eligible) normalize one record. No store access."""
        outcome = self.ruleset.classify(record)
        marker = LoadMarker(
            record_id=record.booking_id,
            status="promoted" if outcome.eligible else "rejected",
            violations=outcome.violations,
            batch_id=record.batch_id,
            checksum=record.checksum(),
        )
        curated = self.normalizer.normalize(record, outcome) if outcome.eligible else None

        logger.debug(
            f"Evaluated {record.booking_id}: {marker.status}",
            extra={
                "record_id": record.booking_id,
                "status": marker.status,
                "violations": [v.value for v in outcome.violations],
            },
        )
        return PromotionDecision(marker=marker, curated=curated)

    def promote(self, record: RawRecord) -> PromotionResult:
        """
        Promote a single raw record.

        Returns the previously recorded outcome when the identifier is already
        marked; the curated record is attached for promoted identifiers.
        """
        result = self.promote_batch([record]).results[0]
        if result.previously_recorded and result.promoted and result.curated is None:
            result = result.model_copy(update={"curated": self.curated_store.get(result.record_id)})
        return result

    def promote_batch(self, records: Iterable[RawRecord]) -> BatchPromotion:
        """
        Promote raw records in ingestion order.

        The first occurrence of an unmarked identifier is evaluated; every other
        occurrence, and every already-marked identifier, is skipped. Skipped
        occurrences whose payload differs from the winner's are counted as
        conflicting duplicates.

        Args:
            records: Raw records (any order; sorted by sequence here)

        Returns:
            BatchPromotion with one result per input record

        Raises:
            StoreUnavailableError: If markers cannot be read or the commit fails.
                Nothing from this pass is committed in that case.
        """
        ordered = sorted(records, key=lambda r: r.sequence)
        if not ordered:
            return BatchPromotion()

        existing = self.tracker.lookup_many(r.booking_id for r in ordered)

        first_seen: dict[str, RawRecord] = {}
        for record in ordered:
            if record.booking_id not in existing and record.booking_id not in first_seen:
                first_seen[record.booking_id] = record

        candidates = list(first_seen.values())
        decisions = self._evaluate_all(candidates)
        claims = self.tracker.commit(decisions) if decisions else []

        winners: dict[str, LoadMarker] = dict(existing)
        claimed: dict[str, CuratedRecord | None] = {}
        newly_promoted: list[CuratedRecord] = []
        for decision, claim in zip(decisions, claims):
            winners[claim.marker.record_id] = claim.marker
            if claim.claimed:
                claimed[claim.marker.record_id] = decision.curated
                if decision.curated is not None:
                    newly_promoted.append(decision.curated)

        results: list[PromotionResult] = []
        conflicting = 0
        for record in ordered:
            marker = winners[record.booking_id]
            is_winner = (
                record.booking_id in claimed
                and first_seen.get(record.booking_id) is record
            )
            if is_winner:
                results.append(PromotionResult(
                    kind=marker.status,
                    record_id=record.booking_id,
                    curated=claimed[record.booking_id],
                    violations=marker.violations,
                ))
                continue

            if marker.checksum is not None and marker.checksum != record.checksum():
                conflicting += 1
                logger.warning(
                    f"Conflicting duplicate for {record.booking_id} skipped (first-seen wins)",
                    extra={
                        "record_id": record.booking_id,
                        "batch_id": record.batch_id,
                        "sequence": record.sequence,
                        "winner_batch_id": marker.batch_id,
                    },
                )
            results.append(PromotionResult(
                kind=marker.status,
                record_id=record.booking_id,
                violations=marker.violations,
                previously_recorded=True,
            ))

        batch = BatchPromotion(
            results=results,
            newly_promoted=newly_promoted,
            conflicting_duplicates=conflicting,
        )
        logger.info(
            f"Promotion pass: {batch.promoted} promoted, {batch.rejected} rejected, {batch.skipped} skipped",
            extra={
                "total_records": len(ordered),
                "promoted": batch.promoted,
                "rejected": batch.rejected,
                "skipped": batch.skipped,
                "conflicting_duplicates": conflicting,
            },
        )
        return batch

    def _evaluate_all(self, records: list[RawRecord]) -> list[PromotionDecision]:
        if self.max_workers == 1 or len(records) < 2:
            return [self.evaluate(record) for record in records]
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="promote") as executor:
            return list(executor.map(self.evaluate, records))
