"""
EmailPatternValidator - soft check of customer emails against '%@%.%'.
"""

from booking_pipeline.core.models import ViolationKind
from booking_pipeline.utils.parsing import matches_email_pattern

from .base_validator import BaseValidator


class EmailPatternValidator(BaseValidator):
    """
    Flags missing emails and emails not matching the loose '%@%.%' pattern.

    Soft failure: the record is still promoted, with the email nulled.
    """

    def validate(self, value: str, record: dict[str, str]) -> None:
        if not value or not value.strip():
            raise self.fail("Email is missing")

        if not matches_email_pattern(value):
            raise self.fail(f"Value '{value}' does not match pattern '%@%.%'")

    @property
    def violation(self) -> ViolationKind:
        return ViolationKind.INVALID_EMAIL

    @property
    def rule_type(self) -> str:
        return "email_pattern"
