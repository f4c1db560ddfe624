"""
PipelineConfig model: the explicit link between one source and one table.
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from .load_result import WriteMode


class NotificationConfig(BaseModel):
    """
    Where validation reports are sent.

    Attributes:
        channel: "log" (structured log entry) or "webhook" (HTTP POST)
        webhook_url: Target URL for the webhook channel
        only_on_rejections: Skip delivery when every row was accepted
    """

    channel: Literal["log", "webhook"] = "log"
    webhook_url: str | None = None
    only_on_rejections: bool = False

    @model_validator(mode="after")
    def check_webhook_url(self) -> "NotificationConfig":
        """Webhook channel needs a URL."""
        if self.channel == "webhook" and not self.webhook_url:
            raise ValueError("webhook channel requires webhook_url")
        return self


class PipelineConfig(BaseModel):
    """
    One source → table linkage, passed explicitly to each run.

    Attributes:
        name: Unique pipeline name
        locator: Source locator (URL, file path, or Spark-readable path)
        reader: Fetcher to use; "auto" picks by locator scheme
        file_format: Format for the Spark reader (csv, json, parquet)
        destination: Destination table, optionally schema-qualified
        mode: Write mode
        rules_path: YAML rule file; no rules when omitted
        fetch_timeout: Seconds before a fetch is abandoned
        load_timeout: Seconds before a load is abandoned
        notification: Report delivery settings
        enabled: Whether the pipeline is run by "run --all"
    """

    name: str = Field(..., min_length=1, max_length=255)
    locator: str = Field(..., min_length=1)
    reader: Literal["auto", "http", "file", "spark"] = "auto"
    file_format: Literal["csv", "json", "parquet"] = "csv"
    destination: str = Field(..., min_length=1)
    mode: WriteMode = WriteMode.REPLACE
    rules_path: str | None = None
    fetch_timeout: float = Field(30.0, gt=0)
    load_timeout: float = Field(60.0, gt=0)
    notification: NotificationConfig = Field(default_factory=NotificationConfig)
    enabled: bool = True

    class Config:
        json_schema_extra = {
            "example": {
                "name": "people_sheet",
                "locator": "https://docs.google.com/spreadsheets/d/abc123/edit#gid=0",
                "reader": "auto",
                "destination": "analytics.people",
                "mode": "append_snapshot",
                "rules_path": "config/validation_rules.yaml",
                "fetch_timeout": 30,
                "load_timeout": 60,
                "notification": {"channel": "log"},
            }
        }
