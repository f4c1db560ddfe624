"""
CustomValidator - wraps a plain Python function as a rule.
"""

from collections.abc import Callable
from typing import Any

from .base_validator import BaseValidator


class CustomValidator(BaseValidator):
    """
    Runs ``validator_func(value, row)``; any exception it raises rejects the row.

    The function gets a copy of the row, so it cannot change the dataset.

    Parameters:
    - validator_func: Callable taking (value, row)
    - error_message: Prefix for the failure message

    Example:
        def must_be_even(value, row):
            if value % 2:
                raise ValueError("odd")
    """

    def __init__(
        self,
        field_name: str,
        parameters: dict[str, Any] | None = None,
        rule_name: str | None = None,
    ):
        super().__init__(field_name, parameters, rule_name)

        func = self.parameters.get("validator_func")
        if not callable(func):
            raise ValueError("CustomValidator needs a callable 'validator_func' parameter")
        self.validator_func: Callable[[Any, dict[str, Any]], Any] = func
        self.error_message = self.parameters.get("error_message", "Custom validation failed")

    @property
    def rule_type(self) -> str:
        return "custom"

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        try:
            self.validator_func(value, dict(record))
        except Exception as e:
            self.fail(f"{self.error_message}: {e}")
