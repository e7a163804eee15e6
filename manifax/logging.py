"""Logging helpers for manifax."""

import logging
import sys

from manifax.config import get_config

_loggers: dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``manifax`` namespace.

    Args:
        name: Logger name, prefixed with ``manifax.`` unless already so.

    Returns:
        Configured logger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Starting CPPA")
    """
    full_name = name if name.startswith("manifax") else f"manifax.{name}"

    if full_name in _loggers:
        return _loggers[full_name]

    logger = logging.getLogger(full_name)
    if not logger.handlers:
        config = get_config()
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(config.log_format))
        logger.addHandler(handler)
        logger.setLevel(config.log_level)
        logger.propagate = False

    _loggers[full_name] = logger
    return logger


def set_log_level(level: str | int) -> None:
    """Set the level of every logger created through :func:`get_logger`."""
    for logger in _loggers.values():
        logger.setLevel(level)
