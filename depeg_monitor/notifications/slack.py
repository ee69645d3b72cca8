"""
Slack Notification Module - Forward new alerts to a Slack webhook.

Features:
- Immediate send for critical alerts
- Batched digest for warning/info alerts
- Rich formatting with severity colors

SlackAlertNotifier plugs into MonitoringEngine.subscribe_alerts() and only
sends alerts it has not seen before.
"""

import logging
import threading
from typing import Dict, Any, List, Optional

import requests

from ..config.settings import ALERT_CONFIG
from ..models import Alert, AlertType, utc_now

logger = logging.getLogger(__name__)

# Severity colors for Slack
SEVERITY_COLORS = {
    "critical": "#FF0000",  # Red
    "warning": "#FFA500",   # Orange
    "info": "#0000FF"       # Blue
}

# Severity emojis
SEVERITY_EMOJIS = {
    "critical": ":rotating_light:",
    "warning": ":warning:",
    "info": ":information_source:"
}

# Digest shows at most this many alerts to stay under Slack's message size limits
DIGEST_LIMIT = 10


def format_single_alert(alert: Alert) -> Dict:
    """
    Format a single alert as a Slack attachment.

    Args:
        alert: Alert to format

    Returns:
        Slack attachment dict
    """
    severity = alert.type.value
    color = SEVERITY_COLORS.get(severity, "#808080")
    emoji = SEVERITY_EMOJIS.get(severity, ":bell:")

    return {
        "color": color,
        "title": f"{emoji} {alert.title}",
        "text": alert.message,
        "fields": [
            {"title": "Coin", "value": alert.coin, "short": True},
            {"title": "Severity", "value": severity.upper(), "short": True},
            {"title": "Alert ID", "value": str(alert.id), "short": True},
        ],
        "footer": "Stablecoin Depeg Monitor",
        "ts": int(alert.timestamp.timestamp())
    }


def format_batch_digest(alerts: List[Alert]) -> Dict:
    """
    Format multiple alerts as a digest message.

    Args:
        alerts: Alerts to include

    Returns:
        Slack message payload
    """
    by_severity = {"critical": [], "warning": [], "info": []}
    for alert in alerts:
        by_severity[alert.type.value].append(alert)

    summary_parts = []
    if by_severity["critical"]:
        summary_parts.append(f":rotating_light: {len(by_severity['critical'])} Critical")
    if by_severity["warning"]:
        summary_parts.append(f":warning: {len(by_severity['warning'])} Warning")
    if by_severity["info"]:
        summary_parts.append(f":information_source: {len(by_severity['info'])} Info")

    blocks = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": f"Depeg Alert Digest ({len(alerts)} alerts)",
                "emoji": True
            }
        },
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": " | ".join(summary_parts)}
        },
        {"type": "divider"}
    ]

    for alert in alerts[:DIGEST_LIMIT]:
        emoji = SEVERITY_EMOJIS.get(alert.type.value, ":bell:")
        blocks.append({
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f"{emoji} *{alert.coin}* - {alert.title}\n{alert.message}"
            }
        })

    if len(alerts) > DIGEST_LIMIT:
        blocks.append({
            "type": "context",
            "elements": [
                {"type": "mrkdwn", "text": f"_...and {len(alerts) - DIGEST_LIMIT} more alerts_"}
            ]
        })

    return {"blocks": blocks}


def send_slack_message(payload: Dict, webhook_url: Optional[str] = None) -> bool:
    """
    Send a message to a Slack webhook.

    Args:
        payload: Slack message payload
        webhook_url: Webhook URL (defaults to ALERT_CONFIG['slack_webhook'])

    Returns:
        True if successful
    """
    webhook_url = webhook_url or ALERT_CONFIG.get("slack_webhook")
    if not webhook_url:
        logger.warning("SLACK_WEBHOOK_URL not configured, skipping Slack notification")
        return False

    try:
        response = requests.post(
            webhook_url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=10
        )
        response.raise_for_status()
        return True
    except requests.exceptions.RequestException as e:
        logger.error(f"Slack send error: {e}")
        return False


def send_slack_alert(alert: Alert, webhook_url: Optional[str] = None) -> bool:
    """Send a single alert to Slack immediately."""
    return send_slack_message({"attachments": [format_single_alert(alert)]}, webhook_url)


def send_slack_batch(alerts: List[Alert], webhook_url: Optional[str] = None) -> bool:
    """Send alerts as one digest (a single alert goes out on its own)."""
    if not alerts:
        return True
    if len(alerts) == 1:
        return send_slack_alert(alerts[0], webhook_url)
    return send_slack_message(format_batch_digest(alerts), webhook_url)


class SlackAlertNotifier:
    """
    Alert subscriber that posts newly raised alerts to Slack.

    Alert ids only increase, so anything above the highest id already
    handled is new. Dismissals and evictions never trigger a send.

    Args:
        webhook_url: Webhook URL (defaults to ALERT_CONFIG['slack_webhook'])
    """

    def __init__(self, webhook_url: Optional[str] = None):
        self.webhook_url = webhook_url or ALERT_CONFIG.get("slack_webhook")
        self.last_notified_id = 0
        self.stats = {"critical_sent": 0, "batch_sent": 0, "errors": 0}
        self._lock = threading.Lock()

    def __call__(self, alerts: List[Alert]) -> Dict[str, Any]:
        return self.process(alerts)

    def process(self, alerts: List[Alert]) -> Dict[str, Any]:
        """
        Send the alerts from a published list that were not sent before.

        - Critical alerts: Send individually
        - Warning/Info alerts: Batch together

        Returns:
            Dict with processing results
        """
        result = {
            "timestamp": utc_now().isoformat(),
            "total_processed": 0,
            "critical_sent": 0,
            "batch_sent": 0,
            "errors": []
        }

        with self._lock:
            # Oldest first so Slack shows alerts in the order they were raised
            pending = sorted(
                (a for a in alerts if a.id > self.last_notified_id),
                key=lambda a: a.id
            )
            if not pending:
                return result
            self.last_notified_id = pending[-1].id

            result["total_processed"] = len(pending)
            critical_alerts = [a for a in pending if a.type == AlertType.CRITICAL]
            other_alerts = [a for a in pending if a.type != AlertType.CRITICAL]

            for alert in critical_alerts:
                if send_slack_alert(alert, self.webhook_url):
                    result["critical_sent"] += 1
                else:
                    result["errors"].append(f"Critical alert {alert.id}: send failed")

            if other_alerts:
                if send_slack_batch(other_alerts, self.webhook_url):
                    result["batch_sent"] = len(other_alerts)
                else:
                    result["errors"].append(f"Batch of {len(other_alerts)}: send failed")

            self.stats["critical_sent"] += result["critical_sent"]
            self.stats["batch_sent"] += result["batch_sent"]
            self.stats["errors"] += len(result["errors"])

        return result
