"""
Validation ruleset for classifying raw booking records.

The ruleset builds validators from rule configurations, applies them to a
raw record and produces a ValidationOutcome. classify() is pure and total:
it never raises for bad data and never touches a store.
"""

from typing import Any, Iterable

from booking_pipeline.core.models import HARD_VIOLATIONS, RawRecord, ValidationOutcome, ViolationKind
from booking_pipeline.core.rules.rule_config import RulesetConfig
from booking_pipeline.core.validators import (
    AmountFormatValidator,
    AmountSignValidator,
    BaseValidator,
    DateFormatValidator,
    DateOrderValidator,
    EmailPatternValidator,
    RuleViolation,
    StatusVariantValidator,
)


class ValidationRuleset:
    """
    Orchestrates validation rules on raw booking records.

    Rules run in configuration order and every failing rule contributes its
    tag; a record is eligible for promotion when no hard tag was raised.
    """

    VALIDATOR_REGISTRY = {
        "email_pattern": EmailPatternValidator,
        "date_format": DateFormatValidator,
        "date_order": DateOrderValidator,
        "amount_format": AmountFormatValidator,
        "amount_sign": AmountSignValidator,
        "status_variant": StatusVariantValidator,
    }

    def __init__(self, rules: list[dict[str, Any]]):
        """
        Initialize the ruleset with validation rules.

        Args:
            rules: List of rule configurations, each containing:
                   - rule_name: str
                   - rule_type: str (email_pattern, date_format, date_order,
                     amount_format, amount_sign, status_variant)
                   - field_name: str
                   - parameters: Dict[str, Any] (optional)
                   - enabled: bool (default True)
        """
        self.rules = rules
        self.validators: list[tuple[str, BaseValidator]] = []
        self._build_validators()

    @classmethod
    def from_config(cls, config: RulesetConfig | None = None) -> "ValidationRuleset":
        """Build the standard booking ruleset."""
        return cls((config or RulesetConfig()).build_rules())

    def _build_validators(self) -> None:
        """Build validator instances from rule configurations."""
        for rule in self.rules:
            if not rule.get("enabled", True):
                continue

            rule_name = rule["rule_name"]
            rule_type = rule["rule_type"]

            validator_class = self.VALIDATOR_REGISTRY.get(rule_type)
            if not validator_class:
                raise ValueError(f"Unknown rule type: {rule_type}")

            try:
                validator = validator_class(rule["field_name"], rule.get("parameters", {}))
            except ValueError as e:
                raise ValueError(f"Failed to create validator for rule '{rule_name}': {e}") from e
            self.validators.append((rule_name, validator))

    def classify(self, record: RawRecord) -> ValidationOutcome:
        """
        Classify a raw record against all rules.

        Args:
            record: The RawRecord to classify

        Returns:
            ValidationOutcome with every violation tag and the eligibility flag
        """
        violations: list[ViolationKind] = []
        payload = record.payload

        for _, validator in self.validators:
            value = payload.get(validator.field_name) or ""
            try:
                validator.validate(value, payload)
            except RuleViolation as violation:
                if violation.kind not in violations:
                    violations.append(violation.kind)

        eligible = not any(kind in HARD_VIOLATIONS for kind in violations)

        return ValidationOutcome(
            record_id=record.booking_id,
            violations=violations,
            eligible=eligible,
        )

    def explain(self, record: RawRecord) -> list[RuleViolation]:
        """Return the individual rule failures (with messages) for auditing."""
        failures = []
        for _, validator in self.validators:
            value = record.payload.get(validator.field_name) or ""
            try:
                validator.validate(value, record.payload)
            except RuleViolation as violation:
                failures.append(violation)
        return failures

    def classify_batch(self, records: Iterable[RawRecord]) -> list[ValidationOutcome]:
        """
        Classify a batch of records.

        Args:
            records: RawRecord objects

        Returns:
            List of ValidationOutcome objects, one per record
        """
        return [self.classify(record) for record in records]

    def get_rule_summary(self) -> dict[str, Any]:
        """
        Get summary of loaded rules.

        Returns:
            Dictionary with rule counts by type and by severity
        """
        by_type: dict[str, int] = {}
        by_severity: dict[str, int] = {}
        for _, validator in self.validators:
            by_type[validator.rule_type] = by_type.get(validator.rule_type, 0) + 1
            severity = validator.violation.severity.value
            by_severity[severity] = by_severity.get(severity, 0) + 1
        return {
            "total_rules": len(self.validators),
            "rules_by_type": by_type,
            "rules_by_severity": by_severity,
        }
