"""
Unit tests for the Pydantic data models.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from sheetload.core.models import (
    Dataset,
    LoadResult,
    NotificationConfig,
    PipelineConfig,
    RejectedRow,
    ValidationReport,
    WriteMode,
)


class TestDataset:
    """Tests for Dataset"""

    def test_from_records_takes_header_from_first_row(self):
        dataset = Dataset.from_records([{"b": 1, "a": 2}, {"b": 3, "a": 4}])
        assert dataset.columns == ("b", "a")
        assert len(dataset) == 2

    def test_from_records_empty_with_explicit_columns(self):
        dataset = Dataset.from_records([], columns=["name", "age"])
        assert dataset.columns == ("name", "age")
        assert len(dataset) == 0

    def test_inconsistent_row_rejected(self):
        """Every row must carry exactly the header's columns"""
        with pytest.raises(ValidationError) as exc_info:
            Dataset.from_records([{"name": "Alice", "age": 30}, {"name": "Bob"}])
        assert "do not match header" in str(exc_info.value)

    def test_duplicate_columns_rejected(self):
        with pytest.raises(ValidationError):
            Dataset(source="x", columns=("a", "a"), rows=())

    def test_scalar_types_preserved(self):
        dataset = Dataset.from_records([{"s": "7", "i": 7, "f": 7.5, "b": True, "n": None}])
        row = dataset.rows[0]
        assert row == {"s": "7", "i": 7, "f": 7.5, "b": True, "n": None}
        assert isinstance(row["b"], bool)
        assert isinstance(row["i"], int) and not isinstance(row["i"], bool)

    def test_dataset_is_frozen(self, people_dataset):
        with pytest.raises(ValidationError):
            people_dataset.source = "elsewhere"

    def test_iter_rows_returns_copies(self, people_dataset):
        for row in people_dataset.iter_rows():
            row["name"] = "changed"
        assert people_dataset.rows[0]["name"] == "Alice"


class TestValidationReport:
    """Tests for ValidationReport"""

    def test_partition_must_cover_total(self):
        with pytest.raises(ValidationError) as exc_info:
            ValidationReport(source="x", total_rows=3, accepted=({"a": 1},))
        assert "total_rows" in str(exc_info.value)

    def test_summary_and_counts(self):
        report = ValidationReport(
            source="x",
            rule_names=["non_empty"],
            total_rows=2,
            accepted=({"name": "Alice"},),
            rejected=(RejectedRow(row_index=1, row={"name": ""}, failed_rules=["non_empty"]),),
            failures=({"row_index": 1, "rule_name": "non_empty", "message": "name: empty"},),
        )
        assert report.accepted_count == 1
        assert report.rejected_count == 1
        assert report.passed is False
        assert report.summary() == {
            "source": "x",
            "total_rows": 2,
            "accepted": 1,
            "rejected": 1,
            "failures_by_rule": {"non_empty": 1},
        }

    def test_rejected_row_needs_a_failed_rule(self):
        with pytest.raises(ValidationError):
            RejectedRow(row_index=0, row={}, failed_rules=[])


class TestConfigModels:
    """Tests for PipelineConfig and NotificationConfig"""

    def test_pipeline_defaults(self):
        config = PipelineConfig(name="p", locator="data.csv", destination="public.people")
        assert config.mode == WriteMode.REPLACE
        assert config.reader == "auto"
        assert config.notification.channel == "log"
        assert config.rules_path is None

    def test_mode_parsed_from_string(self):
        config = PipelineConfig(name="p", locator="x", destination="t", mode="append_snapshot")
        assert config.mode is WriteMode.APPEND_SNAPSHOT

    def test_invalid_mode_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig(name="p", locator="x", destination="t", mode="merge")

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig(name="p", locator="x", destination="t", fetch_timeout=0)

    def test_webhook_requires_url(self):
        with pytest.raises(ValidationError) as exc_info:
            NotificationConfig(channel="webhook")
        assert "webhook_url" in str(exc_info.value)

    def test_load_result(self):
        now = datetime.now(timezone.utc)
        result = LoadResult(destination="t", mode="append_snapshot", rows_written=3, captured_at=now)
        assert result.mode is WriteMode.APPEND_SNAPSHOT
        assert result.skipped is False
