"""
Notification modules for alerting.

Supports:
- Slack
"""

from .slack import (
    SlackAlertNotifier,
    send_slack_message,
    send_slack_alert,
    send_slack_batch,
    format_single_alert,
    format_batch_digest,
)

__all__ = [
    "SlackAlertNotifier",
    "send_slack_message",
    "send_slack_alert",
    "send_slack_batch",
    "format_single_alert",
    "format_batch_digest",
]
