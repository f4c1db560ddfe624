"""
Named rule constructors for the common checks.

    rules = [non_empty("name"), non_negative("age")]
"""

from .range_validator import RangeValidator
from .regex_validator import RegexValidator
from .required_field_validator import RequiredFieldValidator


def non_empty(field_name: str) -> RequiredFieldValidator:
    """Field must be present, non-null and not blank."""
    return RequiredFieldValidator(field_name, rule_name="non_empty")


def non_negative(field_name: str) -> RangeValidator:
    """Field must be a number >= 0 (nulls pass; combine with non_empty)."""
    return RangeValidator(field_name, {"min": 0}, rule_name="non_negative")


def in_range(field_name: str, min_value: float | None = None, max_value: float | None = None) -> RangeValidator:
    return RangeValidator(field_name, {"min": min_value, "max": max_value}, rule_name="in_range")


def matches(field_name: str, pattern: str) -> RegexValidator:
    return RegexValidator(field_name, {"pattern": pattern}, rule_name="matches")
