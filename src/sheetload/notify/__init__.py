"""
Validation report notification sinks.
"""

from .sinks import (
    LogNotificationSink,
    NotificationSink,
    WebhookNotificationSink,
    build_payload,
    create_sink,
    deliver,
)

__all__ = [
    "NotificationSink",
    "LogNotificationSink",
    "WebhookNotificationSink",
    "build_payload",
    "create_sink",
    "deliver",
]
