"""
Notification sinks for validation reports.

Delivery is best-effort: ``deliver`` logs and counts sink failures and
never raises, so a broken channel cannot fail a pipeline run.
"""

from abc import ABC, abstractmethod
from typing import Any

import httpx

from sheetload.core.models import NotificationConfig, ValidationReport
from sheetload.observability import metrics
from sheetload.observability.logger import get_logger

logger = get_logger(__name__)

MAX_LISTED_FAILURES = 20


def build_payload(report: ValidationReport, run_id: str, max_failures: int = MAX_LISTED_FAILURES) -> dict[str, Any]:
    """
    Render a report as a JSON-serializable payload.

    The "text" field follows the incoming-webhook convention used by chat
    tools, so the payload can be posted to them unchanged.
    """
    summary = report.summary()
    status = "all rows accepted" if report.passed else f"{report.rejected_count} rows rejected"
    return {
        "text": (
            f"[sheetload] run {run_id}: {status} "
            f"({report.accepted_count}/{report.total_rows} accepted) from {report.source}"
        ),
        "run_id": run_id,
        "summary": summary,
        "failures": [
            failure.model_dump() for failure in report.failures[:max_failures]
        ],
        "truncated": len(report.failures) > max_failures,
    }


class NotificationSink(ABC):
    """Receives a validation report for a run."""

    name: str = "sink"

    def __init__(self, only_on_rejections: bool = False):
        self.only_on_rejections = only_on_rejections

    @abstractmethod
    def send(self, report: ValidationReport, run_id: str) -> None:
        """Deliver the report; may raise on delivery failure."""


class LogNotificationSink(NotificationSink):
    """Writes the report summary to the structured log."""

    name = "log"

    def send(self, report: ValidationReport, run_id: str) -> None:
        payload = build_payload(report, run_id, max_failures=5)
        level = logger.info if report.passed else logger.warning
        level(payload["text"], extra={"run_id": run_id, **payload["summary"]})


class WebhookNotificationSink(NotificationSink):
    """
    POSTs the report as JSON to a webhook URL with httpx.
    """

    name = "webhook"

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        only_on_rejections: bool = False,
        client: httpx.Client | None = None,
    ):
        """
        Initialize webhook sink.

        Args:
            url: Webhook endpoint
            timeout: Request timeout in seconds
            only_on_rejections: Skip delivery when every row was accepted
            client: Pre-built client (tests pass one with a mock transport)
        """
        super().__init__(only_on_rejections)
        self.url = url
        self.timeout = timeout
        self.client = client

    def send(self, report: ValidationReport, run_id: str) -> None:
        payload = build_payload(report, run_id)
        if self.client is not None:
            self.client.post(self.url, json=payload, timeout=self.timeout).raise_for_status()
            return
        with httpx.Client(timeout=self.timeout) as client:
            client.post(self.url, json=payload).raise_for_status()


def deliver(sink: NotificationSink | None, report: ValidationReport, run_id: str) -> bool:
    """
    Send a report without letting sink failures escape.

    Returns:
        True if the sink accepted the report
    """
    if sink is None:
        return False

    if sink.only_on_rejections and report.passed:
        metrics.record_notification(sink.name, "skipped")
        return False

    try:
        sink.send(report, run_id)
    except Exception as e:
        logger.warning(
            "Notification delivery failed",
            extra={"sink": sink.name, "run_id": run_id, "error_type": type(e).__name__, "error_message": str(e)},
        )
        metrics.record_notification(sink.name, "failed")
        return False

    metrics.record_notification(sink.name, "delivered")
    return True


def create_sink(config: NotificationConfig) -> NotificationSink:
    """Build the sink a notification configuration asks for."""
    if config.channel == "webhook":
        return WebhookNotificationSink(config.webhook_url, only_on_rejections=config.only_on_rejections)
    return LogNotificationSink(only_on_rejections=config.only_on_rejections)
