"""
Unit tests for pipeline orchestration (fetch → validate → notify → load).
"""

from datetime import datetime, timezone

import pytest

from sheetload.core.errors import DestinationUnavailable, SchemaMismatch, SourceUnavailable
from sheetload.core.models import Dataset, PipelineConfig, WriteMode
from sheetload.core.validators import non_empty, non_negative
from sheetload.fetch import Fetcher, FileFetcher
from sheetload.pipeline import IngestPipeline, default_fetcher, run
from sheetload.warehouse import InMemoryDestination
from sheetload.warehouse.loader import destination_lock

RULES = [non_empty("name"), non_negative("age")]


class StaticFetcher(Fetcher):
    """Returns a fixed dataset for any locator"""

    name = "static"

    def __init__(self, dataset):
        self.dataset = dataset
        self.calls = []

    def fetch(self, locator):
        self.calls.append(locator)
        return self.dataset


class TestRun:
    """Tests for run()"""

    def test_file_to_memory(self, people_csv, memory_destination, recording_sink):
        report, result = run(str(people_csv), RULES, memory_destination, WriteMode.REPLACE, sink=recording_sink)

        assert report.total_rows == 3
        assert report.accepted_count == 2
        assert report.rejected[0].row_index == 1
        assert result.rows_written == 2
        assert [row["name"] for row in memory_destination.read()] == ["Alice", "Bob"]
        assert recording_sink.sent[0][0] is report

    def test_people_example(self, people_dataset, memory_destination):
        report, result = run(
            "memory://people", RULES, memory_destination, "replace", fetcher=StaticFetcher(people_dataset)
        )

        assert report.accepted == ({"name": "Alice", "age": 30},)
        assert report.rejected[0].failed_rules == ["non_empty", "non_negative"]
        assert memory_destination.read() == [{"name": "Alice", "age": 30}]

    def test_all_rejected_replace_empties_destination(self, people_dataset):
        destination = InMemoryDestination(
            name="memory.all_rejected", columns=["name", "age"], rows=[{"name": "Old", "age": 1}]
        )
        everything_fails = [non_negative("name")]

        report, result = run("x", everything_fails, destination, "replace", fetcher=StaticFetcher(people_dataset))

        assert report.accepted == ()
        assert result.rows_written == 0
        assert destination.read() == []

    def test_run_id_passed_to_sink(self, people_dataset, memory_destination, recording_sink):
        run("x", RULES, memory_destination, "replace",
            fetcher=StaticFetcher(people_dataset), sink=recording_sink, run_id="run-42")

        assert recording_sink.sent[0][1] == "run-42"

    def test_failing_sink_does_not_fail_run(self, people_dataset, memory_destination, failing_sink):
        report, result = run(
            "x", RULES, memory_destination, "replace", fetcher=StaticFetcher(people_dataset), sink=failing_sink
        )

        assert result.rows_written == 1

    def test_load_failure_keeps_report(self, people_dataset, recording_sink):
        destination = InMemoryDestination(name="memory.mismatch", columns=["other"], rows=[])

        with pytest.raises(SchemaMismatch) as exc_info:
            run("x", RULES, destination, "replace", fetcher=StaticFetcher(people_dataset), sink=recording_sink)

        report = exc_info.value.report
        assert report is not None
        assert report.accepted_count == 1
        assert recording_sink.sent[0][0] is report

    def test_busy_destination(self, people_dataset, memory_destination, recording_sink):
        lock = destination_lock(memory_destination.name)
        lock.acquire()
        try:
            with pytest.raises(DestinationUnavailable) as exc_info:
                run("x", RULES, memory_destination, "replace",
                    fetcher=StaticFetcher(people_dataset), sink=recording_sink, load_timeout=0.05)
        finally:
            lock.release()

        assert exc_info.value.report is not None
        assert len(recording_sink.sent) == 1

    def test_fetch_failure(self, tmp_path, memory_destination, recording_sink):
        with pytest.raises(SourceUnavailable) as exc_info:
            run(str(tmp_path / "missing.csv"), RULES, memory_destination, "replace", sink=recording_sink)

        assert exc_info.value.report is None
        assert recording_sink.sent == []
        assert memory_destination.get_columns() is None

    def test_append_snapshot(self, people_dataset, memory_destination):
        captured_at = datetime(2024, 5, 1, tzinfo=timezone.utc)
        fetcher = StaticFetcher(people_dataset)

        _, first = run("x", RULES, memory_destination, "append_snapshot", fetcher=fetcher, captured_at=captured_at)
        _, retry = run("x", RULES, memory_destination, "append_snapshot", fetcher=fetcher, captured_at=captured_at)

        assert first.rows_written == 1
        assert retry.skipped is True
        assert memory_destination.read() == [{"name": "Alice", "age": 30, "captured_at": captured_at}]

    def test_header_only_source(self, tmp_path, memory_destination):
        path = tmp_path / "empty.csv"
        path.write_text("name,age\n")

        report, result = run(str(path), RULES, memory_destination, "replace")

        assert report.total_rows == 0
        assert result.rows_written == 0
        assert memory_destination.get_columns() == ["name", "age"]

    def test_default_fetcher(self):
        assert isinstance(default_fetcher("/tmp/x.csv"), FileFetcher)
        assert default_fetcher("https://example.com/x.csv", timeout=3).timeout == 3


class TestIngestPipeline:
    """Tests for IngestPipeline"""

    def test_run_with_rule_file(self, people_csv, rules_file, memory_destination, recording_sink):
        config = PipelineConfig(
            name="people",
            locator=str(people_csv),
            destination=memory_destination.name,
            mode="append_snapshot",
            rules_path=str(rules_file),
        )

        report, result = IngestPipeline(config, memory_destination, sink=recording_sink).run(run_id="r1")

        assert report.rule_names == ["non_empty", "non_negative"]
        assert result.mode is WriteMode.APPEND_SNAPSHOT
        assert result.rows_written == 2
        assert len(recording_sink.sent) == 1

    def test_dry_run_does_not_load(self, people_dataset, recording_sink):
        config = PipelineConfig(name="people", locator="x", destination="t")
        pipeline = IngestPipeline(
            config, destination=None, fetcher=StaticFetcher(people_dataset), rules=RULES, sink=recording_sink
        )

        report = pipeline.dry_run()

        assert report.rejected_count == 1
        assert recording_sink.sent == []

    def test_rule_override(self, memory_destination):
        dataset = Dataset.from_records([{"name": ""}])
        config = PipelineConfig(name="p", locator="x", destination=memory_destination.name)

        report, _ = IngestPipeline(
            config, memory_destination, fetcher=StaticFetcher(dataset), rules=[]
        ).run()

        assert report.accepted_count == 1

    def test_run_without_destination(self, people_dataset, recording_sink):
        config = PipelineConfig(name="people", locator="x", destination="t")
        pipeline = IngestPipeline(
            config, destination=None, fetcher=StaticFetcher(people_dataset), rules=RULES, sink=recording_sink
        )

        with pytest.raises(ValueError, match="no destination"):
            pipeline.run()
        assert recording_sink.sent == []
