"""Logging configuration. Log records go to stderr; stdout carries JSON only."""

import logging
import os
import sys
from typing import Optional, TextIO

LOG_LEVEL_ENV = "GPU_WAYBAR_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ROOT_LOGGER_NAME = "gpu_waybar"


def resolve_level(level: Optional[str] = None) -> str:
    """Pick the level from the argument, then the environment, then the default."""
    name = (level or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    return name if name in LOG_LEVELS else DEFAULT_LOG_LEVEL


def configure_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> logging.Logger:
    """Attach a single stderr handler to the package logger.

    Calling it again replaces the handler instead of adding a second one.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolve_level(level))
    logger.propagate = False
    return logger
