"""Tests for logger functionality."""

import logging

from vsbtools import logger


def test_logger_set_level():
    """Test setting log level via string."""
    logger.set_log_level("DEBUG")
    assert logger.logger.level == 10
    logger.set_log_level("INFO")
    assert logger.logger.level == 20


def test_logger_set_level_int():
    """Numeric levels are accepted as-is."""
    logger.set_log_level(logging.WARNING)
    assert logger.logger.level == logging.WARNING
    logger.set_log_level(logging.INFO)


def test_get_logger_single_handler():
    """Repeated lookups do not stack handlers."""
    first = logger.get_logger("vsbtools")
    second = logger.get_logger("vsbtools")
    assert first is second
    assert len(second.handlers) == 1


def test_color_formatter_includes_message():
    record = logging.LogRecord(
        name="vsbtools",
        level=logging.WARNING,
        pathname="sync.py",
        lineno=1,
        msg="Segment sync lost",
        args=(),
        exc_info=None,
    )
    text = logger.ColorFormatter().format(record)
    assert "Segment sync lost" in text
    assert "[WARNING]" in text
    assert text.startswith(logger.ColorFormatter.YELLOW)


def test_stage_loggers_propagate_to_package():
    """Stage loggers share the package handler instead of adding their own."""
    from vsbtools import sync

    assert sync.logger.name == "vsbtools.sync"
    assert sync.logger.handlers == []
    assert sync.logger.parent is logger.logger


def test_stage_level_set_independently():
    stage = logger.get_logger("vsbtools.carrier")
    logger.set_log_level("DEBUG", "vsbtools.carrier")
    try:
        assert stage.getEffectiveLevel() == logging.DEBUG
        assert logger.logger.level == logging.INFO
        assert logger.get_logger("vsbtools.timing").getEffectiveLevel() == logging.INFO
    finally:
        stage.setLevel(logging.NOTSET)
