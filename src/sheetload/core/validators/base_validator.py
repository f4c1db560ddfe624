"""
Rule capability and the field-validator base class.

A rule is anything with a ``name`` and ``evaluate(row) -> Verdict``. The
field validators in this package check one column each: subclasses
implement ``validate(value, row)`` and call ``fail()`` to reject, and
``evaluate`` turns the outcome into a Verdict.
"""

from abc import ABC, abstractmethod
from typing import Any, NoReturn, Protocol, runtime_checkable

from sheetload.core.models import Row, Verdict


class ValidationError(Exception):
    """Raised by a field validator when a value breaks its rule."""

    def __init__(self, rule_name: str, field_name: str, message: str):
        self.rule_name = rule_name
        self.field_name = field_name
        self.message = message
        super().__init__(f"[{rule_name}] {field_name}: {message}")


@runtime_checkable
class ValidationRule(Protocol):
    """Anything with a name that can evaluate a row."""

    name: str

    def evaluate(self, row: Row) -> Verdict:
        ...


class BaseValidator(ABC):
    """
    Validates a single field of each row.

    Subclasses provide ``rule_type`` (required_field, type_check, range,
    regex, custom) and ``validate``.
    """

    def __init__(
        self,
        field_name: str,
        parameters: dict[str, Any] | None = None,
        rule_name: str | None = None,
    ):
        """
        Args:
            field_name: Column the rule applies to
            parameters: Rule-specific settings (e.g., min/max for range)
            rule_name: Name reported in failures; defaults to "<field>_<rule_type>"
        """
        self.field_name = field_name
        self.parameters = parameters or {}
        self.name = rule_name or f"{field_name}_{self.rule_type}"

    @property
    @abstractmethod
    def rule_type(self) -> str:
        """Rule type identifier used in configuration files."""

    @abstractmethod
    def validate(self, value: Any, record: dict[str, Any]) -> None:
        """
        Check one value.

        Args:
            value: Value of ``field_name`` in the row (None when absent)
            record: The whole row, for rules that look at other columns

        Raises:
            ValidationError: If the value breaks the rule
        """

    def fail(self, message: str) -> NoReturn:
        raise ValidationError(rule_name=self.name, field_name=self.field_name, message=message)

    def evaluate(self, row: Row) -> Verdict:
        """
        Evaluate this rule on a row.

        Never raises: a value the rule cannot handle is reported as a failed
        verdict with a diagnostic message.
        """
        try:
            self.validate(row.get(self.field_name), row)
        except ValidationError as e:
            return Verdict(passed=False, message=f"{e.field_name}: {e.message}")
        except Exception as e:
            return Verdict(
                passed=False,
                message=f"{self.field_name}: could not evaluate {self.rule_type} rule ({type(e).__name__}: {e})",
            )
        return Verdict(passed=True)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, field={self.field_name!r}, params={self.parameters})"
