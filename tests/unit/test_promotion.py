"""
Unit tests for the PromotionController.
"""

import threading
from decimal import Decimal

import pytest

from booking_pipeline.batch import PromotionController
from booking_pipeline.core.models import RawRecord, ViolationKind
from booking_pipeline.core.normalize import Normalizer
from booking_pipeline.core.rules import ValidationRuleset
from booking_pipeline.stores import MemoryStores


def controller_for(stores: MemoryStores, max_workers: int = 1) -> PromotionController:
    ruleset = ValidationRuleset.from_config()
    return PromotionController(
        ruleset,
        Normalizer(ruleset=ruleset),
        stores.tracker,
        stores.curated,
        max_workers=max_workers,
    )


def ingest(stores: MemoryStores, rows: list[dict], batch_id: str = "b1") -> list[RawRecord]:
    stores.raw.append(rows, batch_id=batch_id)
    return stores.raw.scan(batch_id)


@pytest.mark.unit
class TestPromotionController:

    def test_invalid_max_workers(self, stores):
        with pytest.raises(ValueError):
            controller_for(stores, max_workers=0)

    def test_promote_clean_record(self, stores, make_row):
        record = ingest(stores, [make_row("BK1")])[0]

        result = controller_for(stores).promote(record)

        assert result.promoted
        assert not result.previously_recorded
        assert result.curated.hotel_city == "New York"
        assert stores.curated.get("BK1") == result.curated

    def test_promote_rejected_record(self, stores, make_row):
        record = ingest(stores, [make_row("BK2", check_in_date="1/19/2026", check_out_date="1/11/2026")])[0]

        result = controller_for(stores).promote(record)

        assert result.kind == "rejected"
        assert result.violations == [ViolationKind.DATE_ORDER_INVALID]
        assert stores.curated.get("BK2") is None
        assert stores.tracker.lookup("BK2").status == "rejected"

    def test_promote_twice_is_idempotent(self, stores, make_row):
        record = ingest(stores, [make_row("BK1", total_amount="-5")])[0]
        controller = controller_for(stores)

        first = controller.promote(record)
        snapshot = stores.curated.snapshot()
        second = controller.promote(record)

        assert second.previously_recorded
        assert second.curated == first.curated
        assert second.violations == [ViolationKind.NEGATIVE_AMOUNT]
        assert stores.curated.snapshot() == snapshot

    def test_first_seen_occurrence_wins(self, stores, make_row):
        records = ingest(stores, [
            make_row("BK3", total_amount="100", booking_status="CONFIRMD"),
            make_row("BK3", total_amount="999"),
        ])

        batch = controller_for(stores).promote_batch(records)

        assert (batch.promoted, batch.rejected, batch.skipped) == (1, 0, 1)
        assert batch.conflicting_duplicates == 1
        assert stores.curated.get("BK3").total_amount == Decimal("100")
        assert stores.curated.get("BK3").booking_status == "Confirmed"

    def test_order_follows_sequence_not_input(self, stores, make_row):
        records = ingest(stores, [make_row("BK3", total_amount="1"), make_row("BK3", total_amount="2")])

        controller_for(stores).promote_batch(list(reversed(records)))

        assert stores.curated.get("BK3").total_amount == Decimal("1")

    def test_identical_duplicate_is_not_conflicting(self, stores, make_row):
        records = ingest(stores, [make_row("BK1"), make_row("BK1")])

        batch = controller_for(stores).promote_batch(records)

        assert batch.skipped == 1
        assert batch.conflicting_duplicates == 0

    def test_marked_identifiers_are_skipped_across_batches(self, stores, make_row):
        controller = controller_for(stores)
        controller.promote_batch(ingest(stores, [make_row("BK1", total_amount="10")], "b1"))

        batch = controller.promote_batch(ingest(stores, [make_row("BK1", total_amount="20")], "b2"))

        assert batch.skipped == 1
        assert batch.conflicting_duplicates == 1
        assert batch.newly_promoted == []
        assert stores.curated.get("BK1").total_amount == Decimal("10")

    def test_rejected_identifier_stays_rejected(self, stores, make_row):
        controller = controller_for(stores)
        controller.promote_batch(ingest(stores, [make_row("BK5", check_in_date="not-a-date")], "b1"))

        batch = controller.promote_batch(ingest(stores, [make_row("BK5")], "b2"))

        assert batch.skipped == 1
        assert batch.results[0].kind == "rejected"
        assert stores.curated.get("BK5") is None

    def test_empty_batch(self, stores):
        batch = controller_for(stores).promote_batch([])

        assert batch.results == []

    def test_thread_pool_gives_same_results(self, make_row):
        rows = [make_row(f"BK{i}", total_amount=str(-i)) for i in range(40)]
        rows += [make_row("BKX", check_in_date="bad")]
        inline, pooled = MemoryStores(), MemoryStores()

        controller_for(inline).promote_batch(ingest(inline, rows))
        controller_for(pooled, max_workers=4).promote_batch(ingest(pooled, rows))

        assert [r.as_row() for r in inline.curated.snapshot()] == [r.as_row() for r in pooled.curated.snapshot()]
        assert pooled.tracker.status_counts() == {"promoted": 40, "rejected": 1}

    def test_concurrent_controllers_promote_each_id_once(self, stores, make_row):
        records = ingest(stores, [make_row(f"BK{i}") for i in range(25)])
        barrier = threading.Barrier(4)
        totals = []

        def worker():
            controller = controller_for(stores)
            barrier.wait()
            totals.append(controller.promote_batch(records).promoted)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(totals) == 25
        assert stores.curated.count() == 25
