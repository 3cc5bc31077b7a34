"""Run notifications."""
from __future__ import annotations

from .messages import (
    format_backup_message,
    format_failure_message,
    format_missing_log_message,
    format_stats_message,
)
from .webhook import NotificationDeliveryFailure, WebhookNotifier

__all__ = [
    "NotificationDeliveryFailure",
    "WebhookNotifier",
    "format_backup_message",
    "format_failure_message",
    "format_missing_log_message",
    "format_stats_message",
]
