"""Logging helpers shared by the clients and the command line tool."""

import logging
from typing import Any

from .settings import get_settings

PACKAGE_LOGGER = "victoria_metrics_client"


def configure_logging(level: str | None = None) -> None:
    """Configure root logger; `level` overrides the package logger only."""

    settings = get_settings()
    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    logging.basicConfig(level=settings.log_level, format=fmt)

    if level:
        logging.getLogger(PACKAGE_LOGGER).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Helper for retrieving configured loggers."""

    configure_logging()
    return logging.getLogger(name)


def log_structured(
    logger: logging.Logger, message: str, *, level: int = logging.INFO, **context: Any
) -> None:
    """Log `message` followed by `key=value` pairs."""

    extras = " ".join(f"{key}={value}" for key, value in context.items())
    logger.log(level, "%s %s", message, extras)
