"""
RequiredFieldValidator - the column must hold a value.
"""

from typing import Any

from .base_validator import BaseValidator


class RequiredFieldValidator(BaseValidator):
    """
    Rejects rows where the field is absent, null, or blank.

    Parameters:
    - allow_empty_string: Accept "" and whitespace-only strings (default False)
    """

    @property
    def rule_type(self) -> str:
        return "required_field"

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if self.field_name not in record:
            self.fail("Field is missing from record")
        if value is None:
            self.fail("Field value is null")

        allow_empty = self.parameters.get("allow_empty_string", False)
        if isinstance(value, str) and not value.strip() and not allow_empty:
            self.fail("Field value is empty string")
