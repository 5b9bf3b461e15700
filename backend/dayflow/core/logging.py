"""Centralized logging configuration."""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict

from dayflow.core.context import get_request_id

# Third-party loggers that are chatty at INFO.
QUIET_LOGGERS = {
    "googleapiclient.discovery_cache": "ERROR",
    "httpx": "WARNING",
    "openai": "WARNING",
    "urllib3": "WARNING",
}


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


def build_logging_config(log_level: str = "INFO", *, debug: bool = False) -> Dict[str, Any]:
    """Return the dictConfig payload; ``debug`` forces DEBUG for dayflow loggers only."""
    level = log_level.upper()
    app_level = "DEBUG" if debug else level
    loggers: Dict[str, Any] = {name: {"level": quiet} for name, quiet in QUIET_LOGGERS.items()}
    loggers["dayflow"] = {"level": app_level}
    loggers["dayflow.access"] = {"level": level, "handlers": ["access"], "propagate": False}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"},
            "access": {"format": "%(asctime)s | ACCESS | %(request_id)s | %(message)s"},
        },
        "filters": {"request_id": {"()": "dayflow.core.logging.RequestIdFilter"}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": app_level,
                "filters": ["request_id"],
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "filters": ["request_id"],
            },
        },
        "loggers": loggers,
        "root": {"handlers": ["console"], "level": level},
    }


def configure_logging(*, log_level: str = "INFO", debug: bool = False) -> None:
    """Configure application logging once at startup."""
    if getattr(configure_logging, "_configured", False):
        return

    dictConfig(build_logging_config(log_level, debug=debug))
    logging.getLogger(__name__).debug("Logging configured at %s (debug=%s)", log_level, debug)
    setattr(configure_logging, "_configured", True)
