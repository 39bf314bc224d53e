"""Unit tests for src/core/logger.py"""

import logging

from src.core.logger import get_logger, set_level


def test_logger_is_configured_once() -> None:
    logger = get_logger("chess.test.once", level=logging.WARNING)
    again = get_logger("chess.test.once", level=logging.DEBUG)
    assert logger is again
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1
    assert not logger.propagate


def test_default_logger_name() -> None:
    assert get_logger().name == "chess"


def test_set_level() -> None:
    logger = get_logger("chess.test.level", level=logging.INFO)
    set_level(logging.ERROR, ["chess.test.level"])
    assert logger.level == logging.ERROR
