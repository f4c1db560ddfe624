"""
TypeValidator - the value must be (or be convertible to) a given type.
"""

from typing import Any

from .base_validator import BaseValidator

TYPE_NAMES = {
    "int": int,
    "integer": int,
    "float": float,
    "double": float,
    "decimal": float,
    "str": str,
    "string": str,
    "bool": bool,
    "boolean": bool,
}

TRUE_STRINGS = ("true", "1", "yes")
FALSE_STRINGS = ("false", "0", "no")


class TypeValidator(BaseValidator):
    """
    Checks a field's type.

    With ``coerce`` (the default) a value also passes when it converts
    cleanly, e.g. "99.99" for float or "yes" for bool. The check never
    writes the converted value back. A bool is not accepted as an int, and
    a float with a fractional part is not an int.

    Parameters:
    - expected_type: int, float, str or bool (or integer, double, decimal,
      string, boolean), or a Python type
    - coerce: Accept convertible values (default True)
    """

    def __init__(
        self,
        field_name: str,
        parameters: dict[str, Any] | None = None,
        rule_name: str | None = None,
    ):
        expected = (parameters or {}).get("expected_type")
        if isinstance(expected, str):
            expected = TYPE_NAMES.get(expected.lower())
            if expected is None:
                raise ValueError(f"Unsupported type: {(parameters or {})['expected_type']}")
        elif not isinstance(expected, type):
            raise ValueError("TypeValidator needs an 'expected_type' parameter")

        self.expected_type: type = expected
        super().__init__(field_name, parameters, rule_name)
        self.coerce = self.parameters.get("coerce", True)

    @property
    def rule_type(self) -> str:
        return "type_check"

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if value is None or self._is_instance(value):
            return

        expected = self.expected_type.__name__
        if not self.coerce:
            self.fail(f"Expected {expected}, got {type(value).__name__}")

        try:
            self._convert(value)
        except (ValueError, TypeError) as e:
            self.fail(f"Cannot coerce {type(value).__name__} to {expected}: {e}")

    def _is_instance(self, value: Any) -> bool:
        if isinstance(value, bool) and self.expected_type is not bool:
            return False
        return isinstance(value, self.expected_type)

    def _convert(self, value: Any) -> Any:
        if self.expected_type is bool:
            if not isinstance(value, str):
                return bool(value)
            lowered = value.lower()
            if lowered in TRUE_STRINGS:
                return True
            if lowered in FALSE_STRINGS:
                return False
            raise ValueError(f"'{value}' is not a boolean")

        if self.expected_type is int and isinstance(value, float) and not value.is_integer():
            raise ValueError(f"{value} has a fractional part")

        return self.expected_type(value)
