"""
Pipeline configuration loading.

Expected YAML format:
```yaml
pipelines:
  - name: people_sheet
    locator: https://docs.google.com/spreadsheets/d/abc123/edit#gid=0
    destination: analytics.people
    mode: append_snapshot
    rules_path: validation_rules.yaml   # relative to this file
    fetch_timeout: 30
    load_timeout: 60
    notification:
      channel: webhook
      webhook_url: https://hooks.example.com/services/T000/B000/XXX
```
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from sheetload.core.models import PipelineConfig
from sheetload.core.rules import RuleConfigLoader, RuleEngine
from sheetload.core.validators import BaseValidator


def load_pipeline_configs(config_path: str | Path) -> list[PipelineConfig]:
    """
    Load every pipeline declared in a YAML file.

    Relative ``rules_path`` entries are resolved against the file's directory.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the YAML or any pipeline entry is invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Pipeline configuration file not found: {config_path}")

    with open(config_path) as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

    if not config or not isinstance(config.get("pipelines"), list):
        raise ValueError("Configuration file must contain a 'pipelines' list")

    pipelines = []
    seen = set()
    for index, entry in enumerate(config["pipelines"]):
        try:
            pipeline = PipelineConfig(**entry)
        except (ValidationError, TypeError) as e:
            raise ValueError(f"Invalid pipeline entry #{index}: {e}") from e

        if pipeline.name in seen:
            raise ValueError(f"Duplicate pipeline name: {pipeline.name}")
        seen.add(pipeline.name)

        if pipeline.rules_path and not Path(pipeline.rules_path).is_absolute():
            pipeline = pipeline.model_copy(
                update={"rules_path": str(config_path.parent / pipeline.rules_path)}
            )
        pipelines.append(pipeline)

    return pipelines


def get_pipeline_config(config_path: str | Path, name: str) -> PipelineConfig:
    """Return one named pipeline from a configuration file."""
    for pipeline in load_pipeline_configs(config_path):
        if pipeline.name == name:
            return pipeline
    raise KeyError(f"No pipeline named '{name}' in {config_path}")


def load_rule_set(rules_path: str | Path | None) -> list[BaseValidator]:
    """Build the ordered validators declared in a rule file; no file means no rules."""
    if not rules_path:
        return []
    return RuleEngine(RuleConfigLoader(rules_path).load_rules()).validators
