"""Logging setup shared by the interactive session and the batch entrypoint."""

import logging
import sys
from pythonjsonlogger import jsonlogger

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(threadName)s %(message)s"

# PIL logs every PNG chunk at DEBUG while reportlab embeds images
NOISY_LOGGERS = ("PIL",)


def _build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return jsonlogger.JsonFormatter(fmt=JSON_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")
    return logging.Formatter(fmt=PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(log_level: str = "INFO", json_format: bool = False) -> None:
    """
    Route all records to stdout through a single handler.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Emit one JSON object per record, including the thread
            name so background exports and decodes can be told apart
    """
    level = log_level.upper()
    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(_build_formatter(json_format))
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.INFO, root.level))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(name)
