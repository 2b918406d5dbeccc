"""
Date validators - parseability of stay dates and check-in/check-out ordering.
"""

from typing import Any

from booking_pipeline.core.models import ViolationKind
from booking_pipeline.utils.parsing import DEFAULT_DATE_FORMATS, parse_date

from .base_validator import BaseValidator


class DateFormatValidator(BaseValidator):
    """
    Validates that a field parses as a calendar date.

    Parameters:
    - formats: strptime layouts tried in order (default: DEFAULT_DATE_FORMATS)

    Hard failure: an unparseable or missing date excludes the record.
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)
        self.formats = tuple(self.parameters.get("formats") or DEFAULT_DATE_FORMATS)

    def validate(self, value: str, record: dict[str, str]) -> None:
        if not value or not value.strip():
            raise self.fail("Date is missing")

        if parse_date(value, self.formats) is None:
            raise self.fail(f"Value '{value}' does not match any of {list(self.formats)}")

    @property
    def violation(self) -> ViolationKind:
        return ViolationKind.INVALID_DATE

    @property
    def rule_type(self) -> str:
        return "date_format"


class DateOrderValidator(BaseValidator):
    """
    Validates that this field's date is not before another field's date.

    Parameters:
    - start_field: Field holding the lower bound (required)
    - formats: strptime layouts tried in order

    Unparseable dates are skipped here (reported by DateFormatValidator).
    Hard failure.
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        self.start_field = self.parameters.get("start_field")
        if not self.start_field:
            raise ValueError("DateOrderValidator requires 'start_field' parameter")

        self.formats = tuple(self.parameters.get("formats") or DEFAULT_DATE_FORMATS)

    def validate(self, value: str, record: dict[str, str]) -> None:
        end = parse_date(value, self.formats)
        start = parse_date(record.get(self.start_field), self.formats)
        if start is None or end is None:
            return

        if end < start:
            raise self.fail(f"{self.field_name} {end} is before {self.start_field} {start}")

    @property
    def violation(self) -> ViolationKind:
        return ViolationKind.DATE_ORDER_INVALID

    @property
    def rule_type(self) -> str:
        return "date_order"
