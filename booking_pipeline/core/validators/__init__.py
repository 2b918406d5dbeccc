"""
Validation rule implementations.

Provides validators for email shape, stay dates, amounts and booking status
spellings. Each validator emits exactly one ViolationKind.
"""

from .amount_validator import AmountFormatValidator, AmountSignValidator
from .base_validator import BaseValidator, RuleViolation
from .date_validator import DateFormatValidator, DateOrderValidator
from .email_validator import EmailPatternValidator
from .status_validator import StatusVariantValidator

__all__ = [
    "BaseValidator",
    "RuleViolation",
    "EmailPatternValidator",
    "DateFormatValidator",
    "DateOrderValidator",
    "AmountFormatValidator",
    "AmountSignValidator",
    "StatusVariantValidator",
]
