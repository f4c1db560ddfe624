"""
Prometheus metrics collection for sheetload

Pipeline counters and histograms are registered on a private registry so
that importing the package never touches the process-wide default registry.
"""
import os

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    start_http_server,
)

REGISTRY = CollectorRegistry()


# =======================
# PIPELINE METRICS
# =======================

pipeline_runs_total = Counter(
    name="sheetload_pipeline_runs_total",
    documentation="Pipeline runs by outcome",
    labelnames=["pipeline", "status"],  # status: success, failed
    registry=REGISTRY,
)

rows_fetched_total = Counter(
    name="sheetload_rows_fetched_total",
    documentation="Rows fetched from sources",
    labelnames=["pipeline"],
    registry=REGISTRY,
)

fetch_duration_seconds = Histogram(
    name="sheetload_fetch_duration_seconds",
    documentation="Time spent fetching sources",
    labelnames=["pipeline"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
    registry=REGISTRY,
)

# =======================
# DATA QUALITY METRICS
# =======================

rows_validated_total = Counter(
    name="sheetload_rows_validated_total",
    documentation="Rows validated, by outcome",
    labelnames=["pipeline", "status"],  # status: accepted, rejected
    registry=REGISTRY,
)

rule_failures_total = Counter(
    name="sheetload_rule_failures_total",
    documentation="Rule failures by rule name",
    labelnames=["pipeline", "rule_name"],
    registry=REGISTRY,
)

# =======================
# WAREHOUSE METRICS
# =======================

rows_loaded_total = Counter(
    name="sheetload_rows_loaded_total",
    documentation="Rows written to destinations",
    labelnames=["destination", "mode"],
    registry=REGISTRY,
)

load_duration_seconds = Histogram(
    name="sheetload_load_duration_seconds",
    documentation="Time spent writing to destinations",
    labelnames=["destination", "mode"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0],
    registry=REGISTRY,
)

# =======================
# NOTIFICATION METRICS
# =======================

notifications_total = Counter(
    name="sheetload_notifications_total",
    documentation="Report deliveries by sink and outcome",
    labelnames=["sink", "status"],  # status: delivered, failed, skipped
    registry=REGISTRY,
)


# =======================
# EXPOSITION
# =======================

def generate_metrics() -> bytes:
    """Render all metrics in Prometheus text format."""
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST


def start_metrics_server(port: int | None = None) -> None:
    """
    Expose metrics over HTTP

    Args:
        port: Port to listen on (defaults to METRICS_PORT env var, then 9108)
    """
    port = port or int(os.getenv("METRICS_PORT", "9108"))
    start_http_server(port, registry=REGISTRY)


# =======================
# HELPERS
# =======================

def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """Increment a labelled counter; zero increments are skipped."""
    if value:
        counter.labels(**labels).inc(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    histogram.labels(**labels).observe(value)


def record_fetch(pipeline: str, row_count: int, duration_seconds: float) -> None:
    increment_counter(rows_fetched_total, row_count, pipeline=pipeline)
    observe_histogram(fetch_duration_seconds, duration_seconds, pipeline=pipeline)


def record_validation(pipeline: str, accepted: int, rejected: int, failures_by_rule: dict[str, int]) -> None:
    """
    Record validation outcome counts.

    Args:
        pipeline: Pipeline name
        accepted: Rows accepted
        rejected: Rows rejected
        failures_by_rule: Failure count per rule name
    """
    increment_counter(rows_validated_total, accepted, pipeline=pipeline, status="accepted")
    increment_counter(rows_validated_total, rejected, pipeline=pipeline, status="rejected")
    for name, count in failures_by_rule.items():
        increment_counter(rule_failures_total, count, pipeline=pipeline, rule_name=name)


def record_load(destination: str, mode: str, rows_written: int, duration_seconds: float) -> None:
    increment_counter(rows_loaded_total, rows_written, destination=destination, mode=mode)
    observe_histogram(load_duration_seconds, duration_seconds, destination=destination, mode=mode)


def record_notification(sink: str, status: str) -> None:
    increment_counter(notifications_total, 1, sink=sink, status=status)


def record_run(pipeline: str, success: bool) -> None:
    increment_counter(pipeline_runs_total, 1, pipeline=pipeline, status="success" if success else "failed")
