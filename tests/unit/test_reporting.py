"""
Unit tests for the reporting views and the correction audit.
"""

from datetime import date
from decimal import Decimal

import pytest

from booking_pipeline.core.models import ViolationKind
from booking_pipeline.reporting import ReportingViews, audit_record
from booking_pipeline.utils.validation import ValidationError


@pytest.fixture
def loaded(pipeline, stores, dirty_rows):
    pipeline.ingest(dirty_rows, batch_id="b1")
    pipeline.run_increment()
    return ReportingViews.from_stores(stores)


@pytest.mark.unit
class TestReportingViews:

    def test_clean_records_filters(self, loaded):
        assert [r.booking_id for r in loaded.clean_records()] == ["BK1001", "BK1003", "BK1004", "BK1006"]
        assert [r.booking_id for r in loaded.clean_records(city="New York")] == ["BK1001", "BK1003"]
        assert [r.booking_id for r in loaded.clean_records(status="Cancelled")] == ["BK1006"]
        assert [r.booking_id for r in loaded.clean_records(start=date(2026, 1, 12))] == ["BK1004", "BK1006"]
        assert len(loaded.clean_records(limit=1)) == 1

    def test_clean_records_bad_range(self, loaded):
        with pytest.raises(ValidationError):
            loaded.clean_records(start=date(2026, 2, 1), end=date(2026, 1, 1))

    def test_aggregate_views(self, loaded):
        assert [r.date for r in loaded.daily_aggregates(end=date(2026, 1, 11))] == [date(2026, 1, 11)]
        assert [r.city for r in loaded.city_aggregates(top_n=1)] == ["New York"]
        assert loaded.total_revenue() == Decimal("402.99")
        assert loaded.booking_count() == 4

    def test_rejections(self, loaded):
        assert sorted(m.record_id for m in loaded.rejections()) == ["BK1002", "BK1005"]
        assert [m.record_id for m in loaded.rejections(reason="INVALID_DATE")] == ["BK1005"]

    def test_rejections_unknown_reason(self, loaded):
        with pytest.raises(ValueError):
            loaded.rejections(reason="NOT_A_REASON")

    def test_quality_report(self, loaded):
        report = loaded.quality_report()

        assert report.total_raw == 7
        assert (report.promoted, report.rejected) == (4, 2)
        assert report.pending == 1
        assert report.quality_rate == 0.5714
        assert report.rejections_by_reason == {"DATE_ORDER_INVALID": 1, "INVALID_DATE": 1}

    def test_quality_report_empty(self, stores):
        report = ReportingViews.from_stores(stores).quality_report()

        assert report.quality_rate == 0.0
        assert report.total_raw == 0


@pytest.mark.unit
class TestAuditRecord:

    def test_corrections_for_soft_failures(self, pipeline, stores, dirty_rows):
        pipeline.ingest(dirty_rows, batch_id="b1")
        pipeline.run_increment()

        audit = audit_record(stores.raw, pipeline.ruleset, "BK1001", pipeline.normalizer, stores.tracker)

        assert audit.found
        occurrence = audit.winner
        assert occurrence.eligible
        assert occurrence.violations == [
            ViolationKind.INVALID_EMAIL,
            ViolationKind.NEGATIVE_AMOUNT,
            ViolationKind.STATUS_VARIANT,
        ]
        assert len(occurrence.messages) == 3
        corrections = {c.field_name: (c.raw_value, c.curated_value) for c in occurrence.corrections}
        assert corrections == {
            "hotel_city": ("  new york ", "New York"),
            "customer_name": ("jane doe", "Jane Doe"),
            "customer_email": ("invalid-email", None),
            "check_in_date": ("1/11/2026", "2026-01-11"),
            "total_amount": ("-252.49", "252.49"),
            "booking_status": ("confirmeeed", "Confirmed"),
        }

    def test_duplicate_occurrences_and_winner(self, pipeline, stores, dirty_rows):
        pipeline.ingest(dirty_rows, batch_id="b1")
        pipeline.run_increment()

        audit = audit_record(stores.raw, pipeline.ruleset, "BK1003", tracker=stores.tracker)

        assert len(audit.occurrences) == 2
        assert audit.winner is audit.occurrences[0]
        assert audit.marker.status == "promoted"

    def test_amount_corrections_compare_by_value(self, pipeline, stores, make_row):
        pipeline.ingest([make_row("BK1", total_amount="100"), make_row("BK2", total_amount="19.995")], batch_id="b1")

        same = audit_record(stores.raw, pipeline.ruleset, "BK1", pipeline.normalizer)
        rounded = audit_record(stores.raw, pipeline.ruleset, "BK2", pipeline.normalizer)

        assert "total_amount" not in {c.field_name for c in same.winner.corrections}
        assert [
            (c.raw_value, c.curated_value) for c in rounded.winner.corrections if c.field_name == "total_amount"
        ] == [("19.995", "20.00")]

    def test_rejected_occurrence_has_no_corrections(self, pipeline, stores, dirty_rows):
        pipeline.ingest(dirty_rows, batch_id="b1")

        audit = audit_record(stores.raw, pipeline.ruleset, "BK1002")

        assert not audit.occurrences[0].eligible
        assert audit.occurrences[0].corrections == []
        assert audit.marker is None

    def test_unknown_identifier(self, stores, pipeline):
        audit = audit_record(stores.raw, pipeline.ruleset, "NOPE")

        assert not audit.found
        assert audit.winner is None
