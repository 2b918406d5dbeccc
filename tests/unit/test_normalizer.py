"""
Unit tests for the Normalizer.
"""

from datetime import date
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from booking_pipeline.core.errors import NormalizationError
from booking_pipeline.core.models import RawRecord, ViolationKind
from booking_pipeline.core.normalize import Normalizer
from booking_pipeline.core.rules import RulesetConfigBuilder, ValidationRuleset


def raw(row: dict) -> RawRecord:
    return RawRecord(booking_id=row["booking_id"], batch_id="b1", payload=row)


@pytest.mark.unit
class TestNormalizer:
    """Tests for Normalizer.normalize"""

    def test_clean_record(self, make_row):
        curated = Normalizer().normalize(raw(make_row()))

        assert curated.booking_id == "BK1001"
        assert curated.hotel_city == "New York"
        assert curated.customer_name == "Jane Doe"
        assert curated.customer_email == "jane.doe@example.com"
        assert curated.check_in_date == date(2026, 1, 11)
        assert curated.check_out_date == date(2026, 1, 14)
        assert curated.num_guests == 2
        assert curated.total_amount == Decimal("100.00")
        assert curated.booking_status == "Confirmed"
        assert curated.room_type == "Deluxe"
        assert curated.currency == "USD"
        assert curated.batch_id == "b1"

    def test_invalid_email_becomes_null(self, make_row):
        curated = Normalizer().normalize(raw(make_row(customer_email="invalid-email")))

        assert curated.customer_email is None

    def test_email_is_trimmed_and_lowercased(self, make_row):
        curated = Normalizer().normalize(raw(make_row(customer_email="  Bob@Example.COM ")))

        assert curated.customer_email == "bob@example.com"

    def test_negative_amount_becomes_absolute(self, make_row):
        curated = Normalizer().normalize(raw(make_row(total_amount="-252.49")))

        assert curated.total_amount == Decimal("252.49")

    def test_unparseable_amount_becomes_null(self, make_row):
        curated = Normalizer().normalize(raw(make_row(total_amount="n/a")))

        assert curated.total_amount is None

    @pytest.mark.parametrize("status", ["confirmeeed", "confirmd", "CONFIRMEEED", "ConfirMD"])
    def test_status_misspellings_are_canonicalized(self, make_row, status):
        curated = Normalizer().normalize(raw(make_row(booking_status=status)))

        assert curated.booking_status == "Confirmed"

    def test_unknown_status_passes_through(self, make_row):
        curated = Normalizer().normalize(raw(make_row(booking_status="Pending-ish")))

        assert curated.booking_status == "Pending-ish"

    def test_blank_text_fields_become_null(self, make_row):
        curated = Normalizer().normalize(raw(make_row(hotel_city="   ", room_type="", num_guests="many")))

        assert curated.hotel_city is None
        assert curated.room_type is None
        assert curated.num_guests is None

    def test_mixed_date_layouts(self, make_row):
        curated = Normalizer().normalize(raw(make_row(check_in_date="1/11/2026", check_out_date="14-01-2026")))

        assert curated.check_in_date == date(2026, 1, 11)
        assert curated.check_out_date == date(2026, 1, 14)

    def test_rejects_ineligible_record(self, make_row):
        record = raw(make_row(check_in_date="1/19/2026", check_out_date="1/11/2026"))

        with pytest.raises(NormalizationError) as exc_info:
            Normalizer().normalize(record)

        assert exc_info.value.record_id == "BK1001"
        assert exc_info.value.violations == [ViolationKind.DATE_ORDER_INVALID]

    def test_email_pattern_holds_with_rule_disabled(self, make_row):
        """An address failing '%@%.%' is nulled even when the rule raises no tag"""
        config = RulesetConfigBuilder().disable_rule("customer_email_pattern").build()
        ruleset = ValidationRuleset.from_config(config)
        record = raw(make_row(customer_email="Not-An-Email"))
        outcome = ruleset.classify(record)

        curated = Normalizer(config, ruleset).normalize(record, outcome)

        assert not outcome.has(ViolationKind.INVALID_EMAIL)
        assert curated.customer_email is None

    def test_out_of_range_counts_and_amounts_become_null(self, make_row):
        record = raw(make_row(num_guests="99999999999", total_amount="1e400000"))
        outcome = ValidationRuleset.from_config().classify(record)

        curated = Normalizer().normalize(record, outcome)

        assert outcome.eligible
        assert outcome.has(ViolationKind.INVALID_AMOUNT)
        assert curated.num_guests is None
        assert curated.total_amount is None

    def test_amount_rounded_to_cents(self, make_row):
        curated = Normalizer().normalize(raw(make_row(total_amount="-19.995")))

        assert curated.total_amount == Decimal("20.00")

    @given(
        amount=st.decimals(min_value=-10**6, max_value=10**6, places=2, allow_nan=False, allow_infinity=False),
        offset=st.integers(min_value=0, max_value=60),
    )
    def test_property_promoted_records_hold_invariants(self, amount, offset):
        """Property test: normalized amounts are never negative and stays never end before they start"""
        start = date(2026, 1, 1)
        end = date.fromordinal(start.toordinal() + offset)
        row = {
            "booking_id": "P1",
            "check_in_date": start.strftime("%m/%d/%Y"),
            "check_out_date": end.isoformat(),
            "total_amount": str(amount),
        }

        curated = Normalizer().normalize(raw(row))

        assert curated.total_amount >= 0
        assert curated.total_amount == abs(amount)
        assert curated.check_out_date >= curated.check_in_date
