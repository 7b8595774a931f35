"""Notification sinks."""

from ranch_inventory.config import get_settings
from ranch_inventory.core.interfaces.notification import INotificationSink
from ranch_inventory.infrastructure.notifications.logging_sink import LoggingNotificationSink
from ranch_inventory.infrastructure.notifications.webhook import WebhookNotificationSink


def get_notification_sink() -> INotificationSink:
    """Webhook sink when a URL is configured, log sink otherwise."""
    if get_settings().notifications.webhook_url:
        return WebhookNotificationSink()
    return LoggingNotificationSink()


__all__ = [
    "LoggingNotificationSink",
    "WebhookNotificationSink",
    "get_notification_sink",
]
