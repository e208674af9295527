"""
Logging utilities for the vsbtools library.

This module provides a colorized logger shared by every stage of the
demodulator, so carrier, timing, equalizer and sync messages end up in a
single stream.
"""

import logging
import sys


class ColorFormatter(logging.Formatter):
    """
    Custom logging formatter that adds ANSI color codes to the log levels.
    """

    GREY = "\x1b[38;20m"
    CYAN = "\x1b[36;20m"
    GREEN = "\x1b[32;20m"
    YELLOW = "\x1b[33;20m"
    RED = "\x1b[31;20m"
    BOLD_RED = "\x1b[31;1m"
    RESET = "\x1b[0m"
    FORMAT = "%(asctime)s [%(levelname)s] [%(name)s/%(filename)s] %(message)s"

    LEVEL_COLORS = {
        logging.DEBUG: CYAN,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """
        Formats the log record with ANSI color codes based on the log level.
        """
        log_color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        formatter = logging.Formatter(
            f"{log_color}{self.FORMAT}{self.RESET}",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        return formatter.format(record)


PACKAGE_LOGGER = "vsbtools"


def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Returns a logger instance for the vsbtools library.

    Stage modules ask for ``get_logger(__name__)`` and get a child such as
    ``vsbtools.sync``. Children carry no handler of their own; their
    records propagate to the package logger, which owns the colorized
    stdout handler. Any other name gets its own handler.

    Args:
        name: Name of the logger.

    Returns:
        A configured logging.Logger instance.
    """
    logger = logging.getLogger(name)

    if name.startswith(PACKAGE_LOGGER + "."):
        get_logger(PACKAGE_LOGGER)
        return logger

    if not logger.handlers:
        logger.setLevel(logging.INFO)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ColorFormatter())
        logger.addHandler(handler)

    return logger


# Create a default logger for the package
logger = get_logger()


def set_log_level(level, name: str = PACKAGE_LOGGER):
    """
    Sets the log level for the vsbtools logger or one of its stages.

    Args:
        level: logging.DEBUG, logging.INFO, etc. or string "DEBUG", "INFO", etc.
        name: Logger to adjust, e.g. ``"vsbtools.sync"`` to see only sync
            tracking at DEBUG. Stage loggers left unset follow the package.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    get_logger(name).setLevel(level)
