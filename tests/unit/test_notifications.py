"""
Unit tests for notification sinks and best-effort delivery.
"""

import json

import httpx
import pytest

from sheetload.core.models import NotificationConfig
from sheetload.core.rules import validate
from sheetload.core.validators import non_empty, non_negative
from sheetload.notify import (
    LogNotificationSink,
    WebhookNotificationSink,
    build_payload,
    create_sink,
    deliver,
)
from sheetload.observability.metrics import REGISTRY


def notification_count(sink: str, status: str) -> float:
    return REGISTRY.get_sample_value(
        "sheetload_notifications_total", {"sink": sink, "status": status}
    ) or 0.0


@pytest.fixture
def report(people_dataset):
    return validate(people_dataset, [non_empty("name"), non_negative("age")])


@pytest.fixture
def clean_report(people_dataset):
    return validate(people_dataset, [])


class TestBuildPayload:
    """Tests for build_payload"""

    def test_payload(self, report):
        payload = build_payload(report, "run-1")

        assert payload["run_id"] == "run-1"
        assert "1 rows rejected" in payload["text"]
        assert payload["summary"]["failures_by_rule"] == {"non_empty": 1, "non_negative": 1}
        assert [f["rule_name"] for f in payload["failures"]] == ["non_empty", "non_negative"]
        assert payload["truncated"] is False
        json.dumps(payload)  # must be serializable

    def test_failures_truncated(self, report):
        payload = build_payload(report, "run-1", max_failures=1)

        assert len(payload["failures"]) == 1
        assert payload["truncated"] is True


class TestDeliver:
    """Tests for deliver"""

    def test_delivered(self, recording_sink, report):
        assert deliver(recording_sink, report, "run-1") is True
        assert recording_sink.sent == [(report, "run-1")]

    def test_failing_sink_does_not_raise(self, failing_sink, report):
        before = notification_count("failing", "failed")

        assert deliver(failing_sink, report, "run-1") is False
        assert notification_count("failing", "failed") == before + 1

    def test_only_on_rejections_skips_clean_report(self, recording_sink, clean_report):
        recording_sink.only_on_rejections = True

        assert deliver(recording_sink, clean_report, "run-1") is False
        assert recording_sink.sent == []

    def test_only_on_rejections_sends_dirty_report(self, recording_sink, report):
        recording_sink.only_on_rejections = True

        assert deliver(recording_sink, report, "run-1") is True

    def test_no_sink(self, report):
        assert deliver(None, report, "run-1") is False

    def test_log_sink(self, report):
        assert deliver(LogNotificationSink(), report, "run-1") is True


class TestWebhookSink:
    """Tests for WebhookNotificationSink"""

    def test_posts_json(self, report):
        received = []

        def handler(request):
            received.append((str(request.url), json.loads(request.content)))
            return httpx.Response(200)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        sink = WebhookNotificationSink("https://hooks.example.com/abc", client=client)
        sink.send(report, "run-7")

        url, body = received[0]
        assert url == "https://hooks.example.com/abc"
        assert body["run_id"] == "run-7"
        assert body["summary"]["rejected"] == 1

    def test_server_error_raises_from_send_but_not_deliver(self, report):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
        sink = WebhookNotificationSink("https://hooks.example.com/abc", client=client)

        with pytest.raises(httpx.HTTPStatusError):
            sink.send(report, "run-1")
        assert deliver(sink, report, "run-1") is False


class TestCreateSink:
    """Tests for create_sink"""

    def test_log_channel(self):
        sink = create_sink(NotificationConfig())
        assert isinstance(sink, LogNotificationSink)

    def test_webhook_channel(self):
        sink = create_sink(
            NotificationConfig(channel="webhook", webhook_url="https://hooks.example.com/x", only_on_rejections=True)
        )

        assert isinstance(sink, WebhookNotificationSink)
        assert sink.url == "https://hooks.example.com/x"
        assert sink.only_on_rejections is True
