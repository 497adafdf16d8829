"""Tests for package logger setup."""

import logging

import pytest

from pipeline.logging_config import PACKAGE_LOGGERS, setup_logging


@pytest.fixture
def restore_loggers():
    yield
    for name in PACKAGE_LOGGERS:
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True


def test_setup_logging_configures_package_loggers(restore_loggers) -> None:
    setup_logging(level=logging.DEBUG)

    for name in PACKAGE_LOGGERS:
        logger = logging.getLogger(name)
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.propagate is False


def test_setup_logging_twice_does_not_duplicate_handlers(restore_loggers) -> None:
    setup_logging()
    setup_logging()
    assert len(logging.getLogger("waves").handlers) == 1


def test_setup_logging_writes_file(restore_loggers, tmp_path) -> None:
    log_file = tmp_path / "ripple.log"
    setup_logging(level=logging.INFO, log_file=str(log_file))

    logging.getLogger("pipeline.simulation").info("hello from the grid")
    for handler in logging.getLogger("pipeline").handlers:
        handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "Logging initialized." in text
    assert "pipeline.simulation - INFO - hello from the grid" in text
