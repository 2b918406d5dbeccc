"""
Unit tests for booking validation rules.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from booking_pipeline.core.models import Severity, ViolationKind
from booking_pipeline.core.validators import (
    AmountFormatValidator,
    AmountSignValidator,
    DateFormatValidator,
    DateOrderValidator,
    EmailPatternValidator,
    RuleViolation,
    StatusVariantValidator,
)


@pytest.mark.unit
class TestEmailPatternValidator:
    """Tests for EmailPatternValidator"""

    def test_valid_email_passes(self):
        validator = EmailPatternValidator("customer_email")
        validator.validate("jane@example.com", {})  # Should not raise

    def test_invalid_email_raises_soft_violation(self):
        validator = EmailPatternValidator("customer_email")

        with pytest.raises(RuleViolation) as exc_info:
            validator.validate("invalid-email", {})

        assert exc_info.value.kind is ViolationKind.INVALID_EMAIL
        assert exc_info.value.kind.severity is Severity.SOFT
        assert exc_info.value.field_name == "customer_email"

    def test_missing_email_is_flagged(self):
        validator = EmailPatternValidator("customer_email")

        with pytest.raises(RuleViolation) as exc_info:
            validator.validate("  ", {})

        assert "missing" in str(exc_info.value).lower()


@pytest.mark.unit
class TestDateValidators:
    """Tests for DateFormatValidator and DateOrderValidator"""

    def test_accepted_layout_passes(self):
        validator = DateFormatValidator("check_in_date")
        validator.validate("1/19/2026", {})
        validator.validate("2026-01-19", {})

    def test_unparseable_date_is_hard(self):
        validator = DateFormatValidator("check_in_date")

        with pytest.raises(RuleViolation) as exc_info:
            validator.validate("not-a-date", {})

        assert exc_info.value.kind is ViolationKind.INVALID_DATE
        assert exc_info.value.kind.severity is Severity.HARD

    def test_missing_date_is_invalid(self):
        validator = DateFormatValidator("check_out_date")

        with pytest.raises(RuleViolation) as exc_info:
            validator.validate("", {})

        assert exc_info.value.kind is ViolationKind.INVALID_DATE

    def test_custom_formats(self):
        validator = DateFormatValidator("check_in_date", {"formats": ["%d.%m.%Y"]})
        validator.validate("11.01.2026", {})

        with pytest.raises(RuleViolation):
            validator.validate("2026-01-11", {})

    def test_check_out_before_check_in_is_rejected(self):
        validator = DateOrderValidator("check_out_date", {"start_field": "check_in_date"})
        record = {"check_in_date": "1/19/2026", "check_out_date": "1/11/2026"}

        with pytest.raises(RuleViolation) as exc_info:
            validator.validate(record["check_out_date"], record)

        assert exc_info.value.kind is ViolationKind.DATE_ORDER_INVALID

    def test_same_day_stay_passes(self):
        validator = DateOrderValidator("check_out_date", {"start_field": "check_in_date"})
        record = {"check_in_date": "2026-01-11", "check_out_date": "1/11/2026"}
        validator.validate(record["check_out_date"], record)

    def test_order_skipped_when_a_date_is_unparseable(self):
        """Ordering is only evaluated when both dates parse"""
        validator = DateOrderValidator("check_out_date", {"start_field": "check_in_date"})
        record = {"check_in_date": "garbage", "check_out_date": "2020-01-01"}
        validator.validate(record["check_out_date"], record)

    def test_order_requires_start_field(self):
        with pytest.raises(ValueError, match="start_field"):
            DateOrderValidator("check_out_date")


@pytest.mark.unit
class TestAmountValidators:
    """Tests for AmountFormatValidator and AmountSignValidator"""

    def test_negative_amount_is_soft(self):
        validator = AmountSignValidator("total_amount")

        with pytest.raises(RuleViolation) as exc_info:
            validator.validate("-252.49", {})

        assert exc_info.value.kind is ViolationKind.NEGATIVE_AMOUNT
        assert exc_info.value.kind.severity is Severity.SOFT

    def test_sign_ignores_unparseable_amounts(self):
        AmountSignValidator("total_amount").validate("n/a", {})

    @pytest.mark.parametrize("value", ["", "n/a", "12abc", "1e28", "1e400000"])
    def test_unparseable_amount_is_flagged(self, value):
        validator = AmountFormatValidator("total_amount")

        with pytest.raises(RuleViolation) as exc_info:
            validator.validate(value, {})

        assert exc_info.value.kind is ViolationKind.INVALID_AMOUNT

    @given(st.decimals(min_value=0, max_value=10**6, places=2, allow_nan=False, allow_infinity=False))
    def test_property_non_negative_amounts_pass(self, amount):
        """Property test: any non-negative amount passes both amount rules"""
        AmountFormatValidator("total_amount").validate(str(amount), {})
        AmountSignValidator("total_amount").validate(str(amount), {})


@pytest.mark.unit
class TestStatusVariantValidator:
    """Tests for StatusVariantValidator"""

    VARIANTS = {"confirmeeed": "Confirmed", "confirmd": "Confirmed"}

    @pytest.mark.parametrize("value", ["confirmeeed", "CONFIRMD", " Confirmd "])
    def test_known_misspelling_is_flagged(self, value):
        validator = StatusVariantValidator("booking_status", {"variants": self.VARIANTS})

        with pytest.raises(RuleViolation) as exc_info:
            validator.validate(value, {})

        assert exc_info.value.kind is ViolationKind.STATUS_VARIANT

    @pytest.mark.parametrize("value", ["Confirmed", "Pending-ish", ""])
    def test_other_statuses_pass(self, value):
        validator = StatusVariantValidator("booking_status", {"variants": self.VARIANTS})
        validator.validate(value, {})

    def test_requires_variants(self):
        with pytest.raises(ValueError, match="variants"):
            StatusVariantValidator("booking_status")
