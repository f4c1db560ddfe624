"""
Rule configuration files.

A rule file maps each field to the ordered rules applied to it. Parsing
produces the rule dictionaries RuleEngine builds validators from.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml


class RuleConfigLoader:
    """
    Reads a YAML rule file.

    ```yaml
    rules:
      name:
        - type: required_field
          name: non_empty
      age:
        - type: type_check
          params:
            expected_type: int
        - type: range
          name: non_negative
          params:
            min: 0
          enabled: true
    ```

    ``name`` defaults to "<field>_<type>_<position>" and ``enabled`` to true.
    """

    def __init__(self, config_path: str | Path):
        """
        Args:
            config_path: Path to the YAML rule file

        Raises:
            FileNotFoundError: If the file does not exist
        """
        self.config_path = Path(config_path)
        if not self.config_path.is_file():
            raise FileNotFoundError(f"Rule configuration file not found: {config_path}")

    def load_rules(self) -> list[dict[str, Any]]:
        """
        Parse the file into rule dictionaries, in file order.

        Raises:
            ValueError: If the YAML is invalid or a rule is malformed
        """
        text = self.config_path.read_text()
        try:
            config = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {self.config_path}: {e}") from e

        return parse_rules(config)


def parse_rules(config: dict[str, Any] | None) -> list[dict[str, Any]]:
    """
    Parse a ``{"rules": {field: [rule, ...]}}`` mapping into rule dictionaries.

    Field order and per-field rule order are preserved.
    """
    if not config or "rules" not in config:
        raise ValueError("Configuration must contain 'rules' section")

    field_rules = config["rules"] or {}
    if not isinstance(field_rules, dict):
        raise ValueError("'rules' section must map field names to rule lists")

    rules = []
    for field_name, field_rule_list in field_rules.items():
        if not isinstance(field_rule_list, list):
            raise ValueError(f"Rules for field '{field_name}' must be a list")

        for idx, rule_def in enumerate(field_rule_list):
            rules.append(_parse_rule(field_name, rule_def, idx))

    return rules


def _parse_rule(field_name: str, rule_def: dict[str, Any], idx: int) -> dict[str, Any]:
    """
    Parse a single rule definition.

    Raises:
        ValueError: If rule definition is invalid
    """
    if not isinstance(rule_def, dict) or "type" not in rule_def:
        raise ValueError(f"Rule for field '{field_name}' is missing 'type'")

    rule_type = rule_def["type"]
    rule_name = rule_def.get("name", f"{field_name}_{rule_type}_{idx}")
    parameters = rule_def.get("params", rule_def.get("parameters")) or {}

    if not isinstance(parameters, dict):
        raise ValueError(f"Parameters for rule '{rule_name}' must be a mapping")

    return {
        "rule_name": rule_name,
        "rule_type": rule_type,
        "field_name": field_name,
        "parameters": parameters,
        "enabled": rule_def.get("enabled", True),
    }


class RuleConfigBuilder:
    """
    Fluent builder for rule dictionaries, for tests and rules defined in code.

        rules = RuleConfigBuilder().add_non_empty("name").add_non_negative("age").build()
        engine = RuleEngine(rules)
    """

    def __init__(self):
        self.rules: list[dict[str, Any]] = []

    def _add(self, rule_name: str, rule_type: str, field_name: str, **parameters: Any) -> "RuleConfigBuilder":
        self.rules.append(
            {
                "rule_name": rule_name,
                "rule_type": rule_type,
                "field_name": field_name,
                "parameters": parameters,
                "enabled": True,
            }
        )
        return self

    def add_required_field(self, field_name: str, allow_empty_string: bool = False) -> "RuleConfigBuilder":
        return self._add(
            f"{field_name}_required", "required_field", field_name, allow_empty_string=allow_empty_string
        )

    def add_non_empty(self, field_name: str) -> "RuleConfigBuilder":
        """Same rule as ``non_empty(field_name)``."""
        return self._add("non_empty", "required_field", field_name)

    def add_non_negative(self, field_name: str) -> "RuleConfigBuilder":
        """Same rule as ``non_negative(field_name)``."""
        return self._add("non_negative", "range", field_name, min=0)

    def add_type_check(self, field_name: str, expected_type: str, coerce: bool = True) -> "RuleConfigBuilder":
        return self._add(
            f"{field_name}_type_check", "type_check", field_name, expected_type=expected_type, coerce=coerce
        )

    def add_range(
        self,
        field_name: str,
        min_value: float | None = None,
        max_value: float | None = None,
    ) -> "RuleConfigBuilder":
        bounds = {"min": min_value, "max": max_value}
        return self._add(
            f"{field_name}_range", "range", field_name,
            **{key: value for key, value in bounds.items() if value is not None},
        )

    def add_regex(self, field_name: str, pattern: str) -> "RuleConfigBuilder":
        return self._add(f"{field_name}_regex", "regex", field_name, pattern=pattern)

    def add_custom(
        self,
        field_name: str,
        validator_func: Callable[[Any, dict[str, Any]], None],
        rule_name: str | None = None,
    ) -> "RuleConfigBuilder":
        """Add a rule backed by a function that raises to reject a value."""
        return self._add(rule_name or f"{field_name}_custom", "custom", field_name, validator_func=validator_func)

    def build(self) -> list[dict[str, Any]]:
        return list(self.rules)
