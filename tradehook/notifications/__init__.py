"""Notification channels and the Notifier."""

from .notifier import (
    Notification,
    NotificationChannel,
    LoggingChannel,
    CallbackChannel,
    WebhookChannel,
    Notifier,
)

__all__ = [
    "Notification",
    "NotificationChannel",
    "LoggingChannel",
    "CallbackChannel",
    "WebhookChannel",
    "Notifier",
]
