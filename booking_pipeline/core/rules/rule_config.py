"""
Ruleset configuration management.

Loads the booking ruleset (accepted date layouts, status misspelling table)
from YAML files and turns it into the rule list consumed by ValidationRuleset.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from booking_pipeline.core.errors import ConfigurationError
from booking_pipeline.utils.parsing import DEFAULT_DATE_FORMATS

DEFAULT_STATUS_VARIANTS = {
    "confirmeeed": "Confirmed",
    "confirmd": "Confirmed",
    "confrimed": "Confirmed",
    "cancelld": "Cancelled",
    "canceld": "Cancelled",
}

SOFT_RULE_NAMES = frozenset({
    "customer_email_pattern",
    "total_amount_format",
    "total_amount_sign",
    "booking_status_variant",
})


class RulesetConfig(BaseModel):
    """
    Parameters shared by the validation ruleset and the normalizer.

    Attributes:
        date_formats: strptime layouts accepted for stay dates, tried in order
        status_variants: Known misspelling (case-insensitive) -> canonical status
        disabled_rules: Rule names to skip
    """

    date_formats: list[str] = Field(default_factory=lambda: list(DEFAULT_DATE_FORMATS), min_length=1)
    status_variants: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_STATUS_VARIANTS))
    disabled_rules: list[str] = Field(default_factory=list)

    @field_validator("status_variants")
    @classmethod
    def normalize_variant_keys(cls, v):
        """Keys are matched trimmed and lowercased."""
        normalized = {}
        for key, canonical in v.items():
            if not key.strip() or not canonical.strip():
                raise ValueError("status variants cannot be blank")
            normalized[key.strip().lower()] = canonical
        return normalized

    @field_validator("disabled_rules")
    @classmethod
    def check_disabled_rules(cls, v):
        """Only soft rules can be disabled; curated records always need valid stay dates."""
        unknown = [name for name in v if name not in SOFT_RULE_NAMES]
        if unknown:
            raise ValueError(f"cannot disable {unknown}; disableable rules are {sorted(SOFT_RULE_NAMES)}")
        return v

    def canonical_status(self, value: str | None) -> str | None:
        """Canonical status for a known misspelling, None otherwise."""
        if not value:
            return None
        return self.status_variants.get(value.strip().lower())

    def build_rules(self) -> list[dict[str, Any]]:
        """Rule list in ValidationRuleset order."""
        formats = list(self.date_formats)
        rules = [
            _rule("customer_email_pattern", "email_pattern", "customer_email"),
            _rule("check_in_date_format", "date_format", "check_in_date", {"formats": formats}),
            _rule("check_out_date_format", "date_format", "check_out_date", {"formats": formats}),
            _rule(
                "stay_date_order",
                "date_order",
                "check_out_date",
                {"start_field": "check_in_date", "formats": formats},
            ),
            _rule("total_amount_format", "amount_format", "total_amount"),
            _rule("total_amount_sign", "amount_sign", "total_amount"),
            _rule("booking_status_variant", "status_variant", "booking_status", {"variants": self.status_variants}),
        ]
        for rule in rules:
            rule["enabled"] = rule["rule_name"] not in self.disabled_rules
        return rules


def _rule(name: str, rule_type: str, field_name: str, parameters: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "rule_name": name,
        "rule_type": rule_type,
        "field_name": field_name,
        "parameters": parameters or {},
        "enabled": True,
    }


class RulesetConfigLoader:
    """
    Loads the ruleset configuration from a YAML file.

    Expected YAML format:
    ```yaml
    date_formats:
      - "%Y-%m-%d"
      - "%m/%d/%Y"

    status_variants:
      confirmeeed: Confirmed
      confirmd: Confirmed

    disabled_rules: []
    ```
    Omitted sections fall back to the built-in defaults.
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the ruleset config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Ruleset configuration file not found: {config_path}")

    def load(self) -> RulesetConfig:
        """
        Load and parse the ruleset configuration.

        Raises:
            ConfigurationError: If YAML is invalid or a section has the wrong shape
        """
        try:
            with open(self.config_path) as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigurationError(f"{self.config_path} must contain a mapping at top level")

        unknown = set(config) - {"date_formats", "status_variants", "disabled_rules"}
        if unknown:
            raise ConfigurationError(f"Unknown ruleset sections: {sorted(unknown)}")

        try:
            return RulesetConfig(**config)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid ruleset configuration in {self.config_path}: {e}") from e


class RulesetConfigBuilder:
    """
    Programmatically build ruleset configurations (for testing or dynamic rules).
    """

    def __init__(self, base: RulesetConfig | None = None):
        base = base or RulesetConfig()
        self.date_formats: list[str] = list(base.date_formats)
        self.status_variants: dict[str, str] = dict(base.status_variants)
        self.disabled_rules: list[str] = list(base.disabled_rules)

    def with_date_formats(self, *formats: str) -> "RulesetConfigBuilder":
        """Replace the accepted date layouts."""
        self.date_formats = list(formats)
        return self

    def add_date_format(self, fmt: str) -> "RulesetConfigBuilder":
        """Accept one more date layout, tried after the existing ones."""
        self.date_formats.append(fmt)
        return self

    def add_status_variant(self, variant: str, canonical: str) -> "RulesetConfigBuilder":
        """Map one more misspelling to its canonical status."""
        self.status_variants[variant] = canonical
        return self

    def disable_rule(self, rule_name: str) -> "RulesetConfigBuilder":
        self.disabled_rules.append(rule_name)
        return self

    def build(self) -> RulesetConfig:
        """Build and return the ruleset configuration."""
        return RulesetConfig(
            date_formats=self.date_formats,
            status_variants=self.status_variants,
            disabled_rules=self.disabled_rules,
        )
