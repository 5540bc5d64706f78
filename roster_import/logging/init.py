from __future__ import annotations

import logging
import sys

"""Logging initialization with labeled prefixes.

Every line the importer prints goes through one application logger that
writes `LABEL message` to stdout, where LABEL is one of
INFO|WARN|ERROR|SUMMARY (plus DEBUG/CRITICAL). The custom SUMMARY level
carries the one-line import summary consumed by scripts.
"""

__all__ = [
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
    "LabeledFormatter",
    "SUMMARY_LEVEL",
    "LOGGER_NAME",
]

# Custom SUMMARY level (between INFO=20 and WARNING=30)
SUMMARY_LEVEL = 25
LOGGER_NAME = "roster_import"

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Formatter that prefixes each message with its short level label."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{level_label} {record.getMessage()}"


def setup_logging() -> logging.Logger:
    """Configure the application logger (idempotent).

    Returns:
        The `roster_import` logger writing labeled lines to stdout.
    """
    global _logger

    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate output
    logger.propagate = False

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    if _logger is None:
        return setup_logging()
    return _logger


def log_summary(message: str) -> None:
    """Log a message at SUMMARY level."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Reset the global logger state. Mainly for testing purposes."""
    global _logger
    _logger = None
