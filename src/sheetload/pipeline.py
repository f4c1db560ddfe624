"""
Ingestion pipeline orchestration.

Coordinates the flow: fetch → validate → notify → load
"""

import uuid
from collections.abc import Sequence
from datetime import datetime
from urllib.parse import urlparse

from sheetload.config import load_rule_set
from sheetload.core.errors import PipelineError
from sheetload.core.models import LoadResult, PipelineConfig, ValidationReport, WriteMode
from sheetload.core.rules import validate
from sheetload.core.validators import ValidationRule
from sheetload.fetch import Fetcher, FileFetcher, HttpFetcher, create_fetcher
from sheetload.notify import NotificationSink, create_sink, deliver
from sheetload.observability import metrics
from sheetload.observability.logger import get_logger, log_operation
from sheetload.warehouse import Destination, Loader

logger = get_logger(__name__)


def default_fetcher(locator: str, timeout: float = 30.0) -> Fetcher:
    """HTTP fetcher for http(s) locators, local CSV fetcher otherwise."""
    if urlparse(locator).scheme.lower() in ("http", "https"):
        return HttpFetcher(timeout=timeout)
    return FileFetcher()


def run(
    locator: str,
    rules: Sequence[ValidationRule],
    destination: Destination,
    mode: WriteMode | str,
    fetcher: Fetcher | None = None,
    sink: NotificationSink | None = None,
    run_id: str | None = None,
    captured_at: datetime | None = None,
    fetch_timeout: float = 30.0,
    load_timeout: float = 60.0,
    pipeline_name: str = "adhoc",
) -> tuple[ValidationReport, LoadResult]:
    """
    Fetch, validate, and load one source into one destination.

    Only the accepted partition is loaded. The report goes to ``sink`` before
    the load starts, so it is delivered whether or not the load succeeds. A
    load failure propagates unchanged, with the report attached as
    ``error.report``.

    Args:
        locator: Source locator
        rules: Ordered validation rules
        destination: Target table
        mode: Write mode
        fetcher: Fetcher to use (chosen from the locator when omitted)
        sink: Notification sink (no notification when omitted)
        run_id: Run identifier (random when omitted)
        captured_at: Snapshot timestamp for APPEND_SNAPSHOT
        fetch_timeout: Fetch timeout for the default fetcher
        load_timeout: Load timeout
        pipeline_name: Label for logs and metrics

    Returns:
        (ValidationReport, LoadResult)

    Raises:
        SourceUnavailable, MalformedSource: Fetch failed
        DestinationUnavailable, SchemaMismatch: Load failed
    """
    run_id = run_id or uuid.uuid4().hex
    mode = WriteMode(mode)
    fetcher = fetcher or default_fetcher(locator, fetch_timeout)

    try:
        with log_operation("fetch", logger=logger, pipeline=pipeline_name, run_id=run_id, locator=locator) as op:
            dataset = fetcher.fetch(locator)
        metrics.record_fetch(pipeline_name, len(dataset), op.duration)

        report = validate(dataset, rules)
        metrics.record_validation(
            pipeline_name, report.accepted_count, report.rejected_count, report.failures_by_rule()
        )
        logger.info("Validation complete", extra={"pipeline": pipeline_name, "run_id": run_id, **report.summary()})

        deliver(sink, report, run_id)

        try:
            result = Loader(timeout=load_timeout).load(
                report.accepted,
                destination,
                mode,
                captured_at=captured_at,
                columns=dataset.columns,
            )
        except PipelineError as e:
            e.report = report
            raise
    except PipelineError:
        metrics.record_run(pipeline_name, success=False)
        raise

    metrics.record_run(pipeline_name, success=True)
    return report, result


class IngestPipeline:
    """
    Runs one configured source → table linkage.

    Flow:
    1. Fetch the source with the configured reader
    2. Validate rows against the configured rule file
    3. Send the report to the configured notification sink
    4. Load accepted rows in the configured write mode
    """

    def __init__(
        self,
        config: PipelineConfig,
        destination: Destination | None,
        fetcher: Fetcher | None = None,
        rules: Sequence[ValidationRule] | None = None,
        sink: NotificationSink | None = None,
    ):
        """
        Initialize pipeline.

        Args:
            config: Pipeline configuration
            destination: Destination matching ``config.destination`` (None for dry runs)
            fetcher: Overrides the configured reader
            rules: Overrides the configured rule file
            sink: Overrides the configured notification channel
        """
        self.config = config
        self.destination = destination
        self.fetcher = fetcher or create_fetcher(config)
        self.rules = list(rules) if rules is not None else load_rule_set(config.rules_path)
        self.sink = sink or create_sink(config.notification)

    def run(self, run_id: str | None = None, captured_at: datetime | None = None) -> tuple[ValidationReport, LoadResult]:
        if self.destination is None:
            raise ValueError(f"Pipeline '{self.config.name}' has no destination; use dry_run() to validate only")
        return run(
            self.config.locator,
            self.rules,
            self.destination,
            self.config.mode,
            fetcher=self.fetcher,
            sink=self.sink,
            run_id=run_id,
            captured_at=captured_at,
            load_timeout=self.config.load_timeout,
            pipeline_name=self.config.name,
        )

    def dry_run(self) -> ValidationReport:
        """Fetch and validate without loading or notifying."""
        dataset = self.fetcher.fetch(self.config.locator)
        return validate(dataset, self.rules)
