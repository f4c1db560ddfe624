"""
Validation rule implementations.

Provides validators for required fields, type checking, ranges, regex patterns,
and custom validation logic.
"""

from .base_validator import BaseValidator, ValidationError, ValidationRule
from .custom_validator import CustomValidator
from .range_validator import RangeValidator
from .regex_validator import RegexValidator
from .required_field_validator import RequiredFieldValidator
from .shortcuts import in_range, matches, non_empty, non_negative
from .type_validator import TypeValidator

__all__ = [
    "BaseValidator",
    "ValidationError",
    "ValidationRule",
    "RequiredFieldValidator",
    "TypeValidator",
    "RangeValidator",
    "RegexValidator",
    "CustomValidator",
    "non_empty",
    "non_negative",
    "in_range",
    "matches",
]
