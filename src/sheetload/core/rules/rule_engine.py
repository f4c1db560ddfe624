"""
Rule engine for applying validation rules to datasets.

The rule engine builds validators from rule configurations, applies them to
every row of a dataset, and partitions the rows into accepted and rejected.
"""

from collections.abc import Sequence
from typing import Any

from sheetload.core.models import Dataset, RejectedRow, Row, RuleFailure, ValidationReport, Verdict
from sheetload.core.validators import (
    BaseValidator,
    CustomValidator,
    RangeValidator,
    RegexValidator,
    RequiredFieldValidator,
    TypeValidator,
    ValidationRule,
)
from sheetload.observability.logger import get_logger

logger = get_logger(__name__)


def rule_name(rule: ValidationRule) -> str:
    return getattr(rule, "name", None) or type(rule).__name__


def evaluate_rule(rule: ValidationRule, row: Row) -> Verdict:
    """
    Evaluate one rule on a copy of a row.

    Rules that raise instead of returning a verdict are reported as failures
    with a diagnostic message.
    """
    try:
        verdict = rule.evaluate(dict(row))
    except Exception as e:
        return Verdict(passed=False, message=f"rule raised {type(e).__name__}: {e}")

    if not isinstance(verdict, Verdict):
        return Verdict(passed=False, message=f"rule returned {type(verdict).__name__}, expected Verdict")
    return verdict


def validate(dataset: Dataset, rules: Sequence[ValidationRule]) -> ValidationReport:
    """
    Validate every row of a dataset against every rule.

    A row is accepted only if all rules pass. Rejected rows list every rule
    that failed, in rule order. An empty rule sequence accepts every row.

    Args:
        dataset: Dataset to validate (never modified)
        rules: Ordered rules; order fixes message order only

    Returns:
        ValidationReport partitioning the dataset
    """
    rules = list(rules)
    names = [rule_name(rule) for rule in rules]

    accepted: list[Row] = []
    rejected: list[RejectedRow] = []
    failures: list[RuleFailure] = []

    for index, row in enumerate(dataset.rows):
        failed_rules = []
        for rule, name in zip(rules, names):
            verdict = evaluate_rule(rule, row)
            if verdict.passed:
                continue
            failed_rules.append(name)
            failures.append(
                RuleFailure(
                    row_index=index,
                    rule_name=name,
                    message=verdict.message or f"Rule '{name}' failed",
                )
            )

        if failed_rules:
            rejected.append(RejectedRow(row_index=index, row=dict(row), failed_rules=failed_rules))
        else:
            accepted.append(dict(row))

    logger.debug(
        "Validated dataset",
        extra={
            "source": dataset.source,
            "total_rows": len(dataset),
            "accepted": len(accepted),
            "rejected": len(rejected),
        },
    )

    return ValidationReport(
        source=dataset.source,
        rule_names=names,
        total_rows=len(dataset),
        accepted=tuple(accepted),
        rejected=tuple(rejected),
        failures=tuple(failures),
    )


class RuleEngine:
    """
    Builds validators from rule configurations and applies them to datasets.

    Rules are applied in configuration order; disabled rules are skipped.
    """

    VALIDATOR_REGISTRY = {
        "required_field": RequiredFieldValidator,
        "type_check": TypeValidator,
        "range": RangeValidator,
        "regex": RegexValidator,
        "custom": CustomValidator,
    }

    def __init__(self, rules: list[dict[str, Any]]):
        """
        Initialize the rule engine with validation rules.

        Args:
            rules: List of rule configurations, each containing:
                   - rule_name: str
                   - rule_type: str (required_field, type_check, range, regex, custom)
                   - field_name: str
                   - parameters: Dict[str, Any] (optional)
                   - enabled: bool (default True)
        """
        self.rules = rules
        self.validators: list[BaseValidator] = []
        self._build_validators()

    def _build_validators(self) -> None:
        """Build validator instances from rule configurations."""
        for rule in self.rules:
            if not rule.get("enabled", True):
                continue

            name = rule["rule_name"]
            rule_type = rule["rule_type"]

            validator_class = self.VALIDATOR_REGISTRY.get(rule_type)
            if not validator_class:
                raise ValueError(f"Unknown rule type: {rule_type}")

            try:
                validator = validator_class(rule["field_name"], rule.get("parameters") or {}, rule_name=name)
            except (ValueError, TypeError) as e:
                raise ValueError(f"Failed to create validator for rule '{name}': {e}") from e
            self.validators.append(validator)

    def validate(self, dataset: Dataset) -> ValidationReport:
        """Validate a dataset against the configured rules."""
        return validate(dataset, self.validators)

    def get_rule_summary(self) -> dict[str, Any]:
        """
        Get summary of loaded rules.

        Returns:
            Dictionary with rule counts and types
        """
        counts: dict[str, int] = {}
        for validator in self.validators:
            counts[validator.rule_type] = counts.get(validator.rule_type, 0) + 1
        return {
            "total_rules": len(self.validators),
            "rule_names": [validator.name for validator in self.validators],
            "rules_by_type": counts,
        }
