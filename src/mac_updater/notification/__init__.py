"""Run-completion notifications."""

from .notifier import MacNotificationSink, NotificationSink, Notifier

__all__ = ["MacNotificationSink", "NotificationSink", "Notifier"]
