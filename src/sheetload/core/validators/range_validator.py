"""
RangeValidator - numeric bounds on a field.
"""

import math
from typing import Any

from .base_validator import BaseValidator

_BOUNDS = ("min", "max", "min_exclusive", "max_exclusive")


class RangeValidator(BaseValidator):
    """
    Checks that a number lies within the configured bounds.

    Nulls pass. Booleans, NaN and infinities never count as numbers, and
    numeric strings such as "42" are parsed unless ``coerce`` is False.

    Parameters:
    - min / max: Inclusive bounds
    - min_exclusive / max_exclusive: Exclusive bounds
    - coerce: Parse numeric strings (default True)
    """

    def __init__(
        self,
        field_name: str,
        parameters: dict[str, Any] | None = None,
        rule_name: str | None = None,
    ):
        super().__init__(field_name, parameters, rule_name)

        self.min_value, self.max_value, self.min_exclusive, self.max_exclusive = (
            self.parameters.get(bound) for bound in _BOUNDS
        )
        self.coerce = self.parameters.get("coerce", True)

        if all(self.parameters.get(bound) is None for bound in _BOUNDS):
            raise ValueError(f"RangeValidator needs at least one of: {', '.join(_BOUNDS)}")

    @property
    def rule_type(self) -> str:
        return "range"

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if value is None:
            return

        number = self._as_number(value)

        if self.min_value is not None and number < self.min_value:
            self.fail(f"Value {number} is less than minimum {self.min_value}")
        if self.min_exclusive is not None and number <= self.min_exclusive:
            self.fail(f"Value {number} must be greater than {self.min_exclusive}")
        if self.max_value is not None and number > self.max_value:
            self.fail(f"Value {number} exceeds maximum {self.max_value}")
        if self.max_exclusive is not None and number >= self.max_exclusive:
            self.fail(f"Value {number} must be less than {self.max_exclusive}")

    def _as_number(self, value: Any) -> int | float:
        if isinstance(value, bool):
            self.fail("Value must be numeric, got bool")
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            number = value
        elif self.coerce and isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                self.fail(f"Value must be numeric, got '{value}'")
        else:
            self.fail(f"Value must be numeric, got {type(value).__name__}")

        # NaN compares False against every bound
        if not math.isfinite(number):
            self.fail(f"Value must be a finite number, got {value!r}")
        return number
