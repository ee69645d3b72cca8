"""Configuration: environment settings and logging."""

from .settings import DEFAULT_ASSETS, ENGINE_CONFIG, ALERT_CONFIG, LOG_CONFIG
from .logging_config import setup_logging, build_logging_config

__all__ = [
    "DEFAULT_ASSETS",
    "ENGINE_CONFIG",
    "ALERT_CONFIG",
    "LOG_CONFIG",
    "setup_logging",
    "build_logging_config",
]
