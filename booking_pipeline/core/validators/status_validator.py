"""
StatusVariantValidator - detects known misspellings of booking statuses.
"""

from typing import Any

from booking_pipeline.core.models import ViolationKind

from .base_validator import BaseValidator


class StatusVariantValidator(BaseValidator):
    """
    Flags statuses found in the known-misspelling table.

    Parameters:
    - variants: Mapping of misspelling -> canonical status (required).
                Lookup trims the value and ignores case.

    Soft failure: the normalizer replaces the value with the canonical one.
    Unknown statuses are not flagged and pass through unchanged.
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        variants = self.parameters.get("variants")
        if not variants:
            raise ValueError("StatusVariantValidator requires 'variants' parameter")

        self.variants = {key.strip().lower(): canonical for key, canonical in variants.items()}

    def validate(self, value: str, record: dict[str, str]) -> None:
        if not value:
            return

        canonical = self.variants.get(value.strip().lower())
        if canonical is not None:
            raise self.fail(f"Status '{value}' is a variant of '{canonical}'")

    @property
    def violation(self) -> ViolationKind:
        return ViolationKind.STATUS_VARIANT

    @property
    def rule_type(self) -> str:
        return "status_variant"
