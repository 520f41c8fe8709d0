"""Logging setup shared by the API process and its background sweep."""

from __future__ import annotations

import logging
import logging.config
from typing import Optional

from app.config import get_settings

ROOT_LOGGER_NAME = "app"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class LoggingConfig:
    """Configure stdlib logging once per process from settings."""

    _configured = False

    def __init__(self, level: Optional[str] = None) -> None:
        if LoggingConfig._configured:
            return
        self.level = (level or get_settings().log_level or "INFO").upper()
        logging.config.dictConfig(self._build_config())
        LoggingConfig._configured = True

    def _build_config(self) -> dict:
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": LOG_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                ROOT_LOGGER_NAME: {
                    "handlers": ["console"],
                    "level": self.level,
                    "propagate": True,
                },
                "uvicorn.access": {"level": "WARNING"},
            },
        }


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the application namespace."""
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(f"{ROOT_LOGGER_NAME}.") or name == ROOT_LOGGER_NAME:
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
