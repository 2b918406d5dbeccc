"""
Normalizer turning eligible raw records into curated records.

Every field transformation is independent of the others; only status
consults its soft-failure tag on the ValidationOutcome. Emails are checked
against the pattern directly, so a disabled email rule drops the tag but
never lets an unmatched address through.
"""

from booking_pipeline.core.errors import NormalizationError
from booking_pipeline.core.models import CuratedRecord, RawRecord, ValidationOutcome, ViolationKind
from booking_pipeline.core.rules import RulesetConfig, ValidationRuleset
from booking_pipeline.utils.parsing import (
    blank_to_none,
    matches_email_pattern,
    parse_amount,
    parse_date,
    parse_int,
    title_case,
)


class Normalizer:
    """
    Coerces types and standardizes text for records without hard violations.

    Usage:
        normalizer = Normalizer(config)
        outcome = ruleset.classify(raw)
        if outcome.eligible:
            curated = normalizer.normalize(raw, outcome)
    """

    def __init__(self, config: RulesetConfig | None = None, ruleset: ValidationRuleset | None = None):
        """
        Initialize normalizer.

        Args:
            config: Ruleset configuration (date layouts, status variants)
            ruleset: Ruleset used when normalize() is called without an outcome
        """
        self.config = config or RulesetConfig()
        self.ruleset = ruleset or ValidationRuleset.from_config(self.config)

    def normalize(self, record: RawRecord, outcome: ValidationOutcome | None = None) -> CuratedRecord:
        """
        Normalize a raw record.

        Args:
            record: The raw record
            outcome: Its classification; computed when omitted

        Returns:
            CuratedRecord

        Raises:
            NormalizationError: If the outcome carries a hard violation
        """
        if outcome is None:
            outcome = self.ruleset.classify(record)
        if not outcome.eligible:
            raise NormalizationError(record.booking_id, outcome.hard_violations)

        formats = self.config.date_formats

        return CuratedRecord(
            booking_id=record.booking_id,
            hotel_id=self._passthrough(record.field("hotel_id")),
            customer_id=self._passthrough(record.field("customer_id")),
            hotel_city=title_case(record.field("hotel_city")),
            customer_name=title_case(record.field("customer_name")),
            customer_email=self._email(record.field("customer_email")),
            check_in_date=parse_date(record.field("check_in_date"), formats),
            check_out_date=parse_date(record.field("check_out_date"), formats),
            room_type=self._passthrough(record.field("room_type")),
            num_guests=parse_int(record.field("num_guests")),
            total_amount=self._amount(record.field("total_amount")),
            currency=self._passthrough(record.field("currency")),
            booking_status=self._status(record.field("booking_status"), outcome),
            batch_id=record.batch_id,
        )

    @staticmethod
    def _passthrough(value: str) -> str | None:
        return blank_to_none(value)

    @staticmethod
    def _email(value: str) -> str | None:
        if not matches_email_pattern(value):
            return None
        return value.strip().lower()

    @staticmethod
    def _amount(value: str):
        amount = parse_amount(value)
        if amount is None:
            return None
        return abs(amount)

    def _status(self, value: str, outcome: ValidationOutcome) -> str | None:
        if outcome.has(ViolationKind.STATUS_VARIANT):
            canonical = self.config.canonical_status(value)
            if canonical is not None:
                return canonical
        return blank_to_none(value)
