"""
RegexValidator - values must match a regular expression.
"""

import re
from typing import Any

from .base_validator import BaseValidator


class RegexValidator(BaseValidator):
    """
    Matches the string form of the value from its start (``re.match``).

    Nulls pass; pair with a required_field rule to reject them.

    Parameters:
    - pattern: Pattern string or compiled pattern
    - flags: re flags applied when compiling a string pattern
    """

    def __init__(
        self,
        field_name: str,
        parameters: dict[str, Any] | None = None,
        rule_name: str | None = None,
    ):
        super().__init__(field_name, parameters, rule_name)
        self.pattern = self._compile(self.parameters.get("pattern"), self.parameters.get("flags", 0))

    @staticmethod
    def _compile(pattern: Any, flags: int) -> re.Pattern:
        if isinstance(pattern, re.Pattern):
            return pattern
        if not pattern or not isinstance(pattern, str):
            raise ValueError(f"RegexValidator needs a 'pattern' string, got {pattern!r}")
        try:
            return re.compile(pattern, flags)
        except re.error as e:
            raise ValueError(f"Invalid regex pattern {pattern!r}: {e}") from e

    @property
    def rule_type(self) -> str:
        return "regex"

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if value is None:
            return
        text = str(value)
        if self.pattern.match(text) is None:
            self.fail(f"Value '{text}' does not match pattern '{self.pattern.pattern}'")
