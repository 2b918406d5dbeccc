"""
Amount validators - parseability and sign of booking amounts.
"""

from booking_pipeline.core.models import ViolationKind
from booking_pipeline.utils.parsing import MAX_AMOUNT, parse_amount

from .base_validator import BaseValidator


class AmountFormatValidator(BaseValidator):
    """
    Flags amounts that are missing, not numeric, or beyond MAX_AMOUNT.

    Soft failure: the record is promoted with a null amount, which is
    counted as a booking but contributes nothing to revenue.
    """

    def validate(self, value: str, record: dict[str, str]) -> None:
        if not value or not value.strip():
            raise self.fail("Amount is missing")

        if parse_amount(value) is None:
            raise self.fail(f"Cannot parse '{value}' as an amount within +/-{MAX_AMOUNT}")

    @property
    def violation(self) -> ViolationKind:
        return ViolationKind.INVALID_AMOUNT

    @property
    def rule_type(self) -> str:
        return "amount_format"


class AmountSignValidator(BaseValidator):
    """
    Flags negative amounts.

    Soft failure: amounts are assumed sign-corrupted, not fraudulent, and the
    normalizer stores the absolute value.
    """

    def validate(self, value: str, record: dict[str, str]) -> None:
        amount = parse_amount(value)
        # Unparseable amounts are reported by AmountFormatValidator
        if amount is None:
            return

        if amount < 0:
            raise self.fail(f"Value {amount} is negative")

    @property
    def violation(self) -> ViolationKind:
        return ViolationKind.NEGATIVE_AMOUNT

    @property
    def rule_type(self) -> str:
        return "amount_sign"
