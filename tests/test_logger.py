"""Tests for the logging helpers."""
import logging

from core.logger import get_logger, set_level


def test_get_logger_attaches_handlers_once():
    first = get_logger("tests.logger.once")
    second = get_logger("tests.logger.once")

    assert first is second
    assert len(first.handlers) == len(set(first.handlers))


def test_set_level_applies_to_known_loggers():
    logger = get_logger("tests.logger.level", level="WARNING")
    assert logger.level == logging.WARNING

    set_level("debug")
    assert logger.level == logging.DEBUG
    set_level(logging.INFO)
    assert logger.level == logging.INFO
