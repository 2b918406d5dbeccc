"""
Base validator interface for all booking validation rules.

All validators must inherit from BaseValidator and implement the validate() method.
"""

from abc import ABC, abstractmethod
from typing import Any

from booking_pipeline.core.models import ViolationKind


class RuleViolation(Exception):
    """Raised when a validation rule fails."""

    def __init__(self, kind: ViolationKind, field_name: str, message: str):
        self.kind = kind
        self.field_name = field_name
        self.message = message
        super().__init__(f"[{kind.value}] {field_name}: {message}")


class BaseValidator(ABC):
    """
    Abstract base class for all validators.

    Each validator checks one field of a raw booking row and, on failure,
    raises RuleViolation tagged with the single ViolationKind it owns.
    Validators are stateless after construction and safe to share across threads.
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        """
        Initialize validator.

        Args:
            field_name: Name of the raw column to validate
            parameters: Rule-specific parameters (e.g., accepted date formats)
        """
        self.field_name = field_name
        self.parameters = parameters or {}

    @abstractmethod
    def validate(self, value: str, record: dict[str, str]) -> None:
        """
        Validate a raw value against this rule.

        Args:
            value: The raw column text ("" when the column is missing)
            record: The entire raw payload (for cross-field rules)

        Raises:
            RuleViolation: If validation fails
        """
        pass

    @property
    @abstractmethod
    def violation(self) -> ViolationKind:
        """Return the violation tag this validator emits."""
        pass

    @property
    @abstractmethod
    def rule_type(self) -> str:
        """Return the rule type identifier."""
        pass

    def fail(self, message: str) -> RuleViolation:
        return RuleViolation(self.violation, self.field_name, message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(field={self.field_name}, params={self.parameters})"
