"""Tests for clawcraft.logging_config module."""

import logging
from pathlib import Path

from clawcraft.logging_config import ROOT_LOGGER_NAME, get_logger, log_relay, log_session, setup_logging


class TestSetupLogging:
    """Tests for logging setup."""

    def test_writes_to_file(self, tmp_path: Path):
        """Test clawcraft loggers write to the debug log."""
        log_path = setup_logging(tmp_path / "data")

        logging.getLogger("clawcraft.engine").debug("hello from the engine")
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()

        assert log_path == tmp_path / "data" / "debug.log"
        assert "hello from the engine" in log_path.read_text(encoding="utf-8")

    def test_reinitialise_replaces_handlers(self, tmp_path: Path):
        """Test calling setup twice does not duplicate handlers."""
        setup_logging(tmp_path / "a")
        setup_logging(tmp_path / "b")
        assert len(logging.getLogger(ROOT_LOGGER_NAME).handlers) == 2

    def test_get_logger_namespaced(self):
        """Test loggers are placed under the clawcraft namespace."""
        assert get_logger("tools").name == "clawcraft.tools"
        assert get_logger("clawcraft.engine").name == "clawcraft.engine"


class TestStructuredHelpers:
    """Tests for the structured log line helpers."""

    def test_log_session(self, caplog):
        """Test session lines carry id, action and participants."""
        logger = logging.getLogger("clawcraft.test")
        with caplog.at_level(logging.INFO, logger="clawcraft.test"):
            log_session(logger, "abc123", "started", ["naval", "munger"], "epoch=0")
        assert "SESSION | abc123 | started | participants=['naval', 'munger'] | epoch=0" in caplog.text

    def test_log_relay_failure_is_warning(self, caplog):
        """Test failed deliveries log at WARNING."""
        logger = logging.getLogger("clawcraft.test")
        with caplog.at_level(logging.DEBUG, logger="clawcraft.test"):
            log_relay(logger, "http", success=False, details="timeout")
        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.getMessage() == "RELAY | http | FAILED | timeout"
