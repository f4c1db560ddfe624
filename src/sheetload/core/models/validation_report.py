"""
Validation outcome models: verdicts, failures, and the per-run report.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, model_validator

from .dataset import Row


class Verdict(BaseModel):
    """Pass/fail outcome of one rule on one row."""

    passed: bool
    message: str | None = None

    class Config:
        frozen = True


class RuleFailure(BaseModel):
    """A single (row, rule) failure recorded in the report."""

    row_index: int = Field(..., ge=0)
    rule_name: str
    message: str

    class Config:
        frozen = True


class RejectedRow(BaseModel):
    """
    A row that failed at least one rule.

    Attributes:
        row_index: Position of the row in the fetched dataset
        row: Copy of the row data
        failed_rules: Every rule that failed on this row, in rule order
    """

    row_index: int = Field(..., ge=0)
    row: Row
    failed_rules: list[str] = Field(..., min_length=1)

    class Config:
        frozen = True


class ValidationReport(BaseModel):
    """
    Outcome of validating a dataset against an ordered rule set.

    Attributes:
        source: Locator of the validated dataset
        rule_names: Names of the rules applied, in evaluation order
        total_rows: Number of rows examined
        accepted: Rows that passed every rule
        rejected: Rows that failed one or more rules
        failures: Every (row_index, rule_name, message) failure
        created_at: When validation finished
    """

    source: str
    rule_names: list[str] = Field(default_factory=list)
    total_rows: int = Field(..., ge=0)
    accepted: tuple[Row, ...] = ()
    rejected: tuple[RejectedRow, ...] = ()
    failures: tuple[RuleFailure, ...] = ()
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def check_partition(self) -> "ValidationReport":
        """Accepted and rejected rows must partition the dataset."""
        if len(self.accepted) + len(self.rejected) != self.total_rows:
            raise ValueError(
                f"accepted ({len(self.accepted)}) + rejected ({len(self.rejected)}) "
                f"!= total_rows ({self.total_rows})"
            )
        return self

    @property
    def accepted_count(self) -> int:
        return len(self.accepted)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)

    @property
    def passed(self) -> bool:
        """True when no row was rejected."""
        return not self.rejected

    def failures_by_rule(self) -> dict[str, int]:
        """Count failures per rule name."""
        counts: dict[str, int] = {}
        for failure in self.failures:
            counts[failure.rule_name] = counts.get(failure.rule_name, 0) + 1
        return counts

    def summary(self) -> dict[str, Any]:
        """Compact summary for logging and notifications."""
        return {
            "source": self.source,
            "total_rows": self.total_rows,
            "accepted": self.accepted_count,
            "rejected": self.rejected_count,
            "failures_by_rule": self.failures_by_rule(),
        }

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "source": "https://example.com/people.csv",
                "rule_names": ["non_empty", "non_negative"],
                "total_rows": 2,
                "accepted": [{"name": "Alice", "age": 30}],
                "rejected": [
                    {
                        "row_index": 1,
                        "row": {"name": "", "age": -5},
                        "failed_rules": ["non_empty", "non_negative"],
                    }
                ],
                "failures": [
                    {"row_index": 1, "rule_name": "non_empty", "message": "name: Field value is empty string"},
                    {"row_index": 1, "rule_name": "non_negative", "message": "age: Value -5 is less than minimum 0"},
                ],
            }
        }
