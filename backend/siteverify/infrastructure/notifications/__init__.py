"""Notification sink adapters"""

from .dispatcher import NotificationDispatcher, LoggingNotificationSink

__all__ = ["NotificationDispatcher", "LoggingNotificationSink"]
