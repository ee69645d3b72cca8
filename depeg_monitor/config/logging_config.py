"""Logging setup for the monitor and its CLI."""

import logging
import logging.config
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_logging_config(level: str = "INFO", log_file: Optional[str] = None) -> dict:
    """Build a dictConfig with a console handler and an optional append-mode file handler."""
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
        },
        "handlers": {
            "default": {
                "level": level.upper(),
                "formatter": "standard",
                "class": "logging.StreamHandler",
            },
        },
        "loggers": {
            "depeg_monitor": {"handlers": ["default"], "level": level.upper(), "propagate": False},
        },
    }

    if log_file:
        config["handlers"]["file"] = {
            "level": "DEBUG",
            "formatter": "standard",
            "class": "logging.FileHandler",
            "filename": log_file,
            "mode": "a",
        }
        config["loggers"]["depeg_monitor"]["handlers"].append("file")
        config["loggers"]["depeg_monitor"]["level"] = "DEBUG"

    return config


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Install the monitor's logging configuration."""
    logging.config.dictConfig(build_logging_config(level, log_file))
