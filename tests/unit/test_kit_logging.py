"""Unit tests for deploy_kit logging helpers."""

import io
import logging

import pytest

from deploy_kit.kit_logging import ROOT_LOGGER_NAME, get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestGetLogger:
    """Tests for get_logger."""

    def test_root_logger(self):
        """Test the default logger is the package root."""
        assert get_logger().name == "deploy_kit"

    def test_child_logger(self):
        """Test component loggers live under the package namespace."""
        logger = get_logger("patterns.engine")
        assert logger.name == "deploy_kit.patterns.engine"

    def test_cached(self):
        """Test repeated calls return the same logger."""
        assert get_logger("patterns") is get_logger("patterns")


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_installs_single_handler(self):
        """Test repeated setup replaces the handler."""
        setup_logging(stream=io.StringIO())
        logger = setup_logging(stream=io.StringIO())
        assert len(logger.handlers) == 1

    def test_level_string(self):
        """Test level names are accepted."""
        logger = setup_logging("warning", stream=io.StringIO())
        assert logger.level == logging.WARNING

    def test_unknown_level_string(self):
        """Test unknown level names fall back to INFO."""
        logger = setup_logging("chatty", stream=io.StringIO())
        assert logger.level == logging.INFO

    def test_output_format(self):
        """Test records are written to the stream."""
        stream = io.StringIO()
        setup_logging(logging.INFO, stream=stream)
        get_logger("patterns").info("Applied 2 fix(es)")
        assert "deploy_kit.patterns - INFO - Applied 2 fix(es)" in stream.getvalue()

    def test_verbose(self):
        """Test verbose mode logs debug records with their location."""
        stream = io.StringIO()
        logger = setup_logging(logging.WARNING, verbose=True, stream=stream)
        assert logger.level == logging.DEBUG
        get_logger().debug("rule timing")
        assert "test_kit_logging.py:" in stream.getvalue()
        assert "rule timing" in stream.getvalue()
