"""
ValidationOutcome model representing the classification of one raw record (ephemeral).
"""

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class Severity(str, Enum):
    """Whether a violation excludes the record (hard) or is corrected in place (soft)."""

    HARD = "hard"
    SOFT = "soft"


class ViolationKind(str, Enum):
    """Tags attached to a raw record by the validation ruleset."""

    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_DATE = "INVALID_DATE"
    DATE_ORDER_INVALID = "DATE_ORDER_INVALID"
    NEGATIVE_AMOUNT = "NEGATIVE_AMOUNT"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    STATUS_VARIANT = "STATUS_VARIANT"

    @property
    def severity(self) -> Severity:
        if self in HARD_VIOLATIONS:
            return Severity.HARD
        return Severity.SOFT


HARD_VIOLATIONS = frozenset({
    ViolationKind.INVALID_DATE,
    ViolationKind.DATE_ORDER_INVALID,
})


class ValidationOutcome(BaseModel):
    """
    Outcome of classifying a raw record.

    Note: ValidationOutcome is never persisted long-term. It can always be
    re-derived from the RawRecord it belongs to.

    Attributes:
        record_id: Which record was classified
        violations: Violation tags, each at most once, in rule order
        eligible: True when no hard violation is present
    """

    record_id: str
    violations: list[ViolationKind] = Field(default_factory=list)
    eligible: bool = True

    @model_validator(mode="after")
    def check_eligibility(self) -> "ValidationOutcome":
        """eligible must agree with the presence of hard violations."""
        if self.eligible and self.hard_violations:
            raise ValueError("eligible=True but hard violations are present")
        if not self.eligible and not self.hard_violations:
            raise ValueError("eligible=False requires at least one hard violation")
        return self

    @property
    def hard_violations(self) -> list[ViolationKind]:
        return [v for v in self.violations if v.severity is Severity.HARD]

    @property
    def soft_violations(self) -> list[ViolationKind]:
        return [v for v in self.violations if v.severity is Severity.SOFT]

    def has(self, kind: ViolationKind) -> bool:
        return kind in self.violations

    class Config:
        json_schema_extra = {
            "example": {
                "record_id": "BK1001",
                "violations": ["INVALID_EMAIL", "NEGATIVE_AMOUNT"],
                "eligible": True,
            }
        }
