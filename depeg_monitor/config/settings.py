"""
Monitoring engine configuration.

Engine cadence, alert capacity and notification settings, overridable
from the environment.
"""

import os

# Assets tracked when start() is called without an explicit list
DEFAULT_ASSETS = [
    s.strip() for s in os.getenv("MONITOR_ASSETS", "USDT,USDC,DAI,FRAX").split(",") if s.strip()
]

# Engine configuration
ENGINE_CONFIG = {
    "tick_interval": int(os.getenv("MONITOR_TICK_INTERVAL_MS", 3000)) / 1000.0,  # seconds
    "alert_capacity": int(os.getenv("MONITOR_ALERT_CAPACITY", 10)),
    "callback_timeout": float(os.getenv("MONITOR_CALLBACK_TIMEOUT", 1.0)),  # seconds
    "max_workers": int(os.getenv("MONITOR_MAX_WORKERS", 4)),
}

# Alert notification settings
ALERT_CONFIG = {
    "slack_webhook": os.getenv("SLACK_WEBHOOK_URL"),
}

# Logging
LOG_CONFIG = {
    "level": os.getenv("MONITOR_LOG_LEVEL", "INFO"),
    "file": os.getenv("MONITOR_LOG_FILE"),
}
