"""Shared logger for the calculator agent."""
import logging
import sys


LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logger(name: str = "calculator_agent") -> logging.Logger:
    """
    Create the package logger with a single stderr handler.

    Calling it twice returns the same logger without stacking handlers.

    :param str name: Logger name

    :return: Configured logger
    :rtype: logging.Logger
    """
    log = logging.getLogger(name)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
    log.setLevel(logging.INFO)
    return log


def set_level(level: str) -> None:
    """Apply a level name such as ``"DEBUG"`` to the package logger."""
    logger.setLevel(level.upper())


logger = setup_logger()
