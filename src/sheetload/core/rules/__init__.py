"""
Validation rule engine and configuration management.
"""

from .rule_config import RuleConfigBuilder, RuleConfigLoader, parse_rules
from .rule_engine import RuleEngine, evaluate_rule, validate

__all__ = [
    "RuleEngine",
    "RuleConfigLoader",
    "RuleConfigBuilder",
    "parse_rules",
    "evaluate_rule",
    "validate",
]
