"""
Validation ruleset and configuration management.
"""

from .rule_config import RulesetConfig, RulesetConfigBuilder, RulesetConfigLoader
from .ruleset import ValidationRuleset

__all__ = [
    "ValidationRuleset",
    "RulesetConfig",
    "RulesetConfigLoader",
    "RulesetConfigBuilder",
]
