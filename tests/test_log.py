"""Tests for the logging helpers."""

from __future__ import annotations

import logging

from gridcore import log
from gridcore.config import clear_settings


class TestGetLogger:
    """Tests for get_logger()."""

    def test_returns_package_logger(self):
        """The logger is the shared 'gridcore' logger."""
        logger = log.get_logger()
        assert logger.name == "gridcore"
        assert log.get_logger() is logger

    def test_single_stream_handler(self):
        """Repeated calls do not stack handlers."""
        log.get_logger()
        log.get_logger()
        handlers = logging.getLogger("gridcore").handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)

    def test_level_from_settings(self, monkeypatch):
        """The level comes from LogSettings."""
        monkeypatch.setenv("GRIDCORE_LOG__LEVEL", "DEBUG")
        assert log.get_logger().level == logging.DEBUG

    def test_default_level_is_warning(self):
        """Without configuration only warnings and above are emitted."""
        assert log.get_logger().level == logging.WARNING

    def test_reset_logger_rereads_settings(self, monkeypatch):
        """reset_logger() drops handlers and re-applies settings."""
        log.get_logger()
        monkeypatch.setenv("GRIDCORE_LOG__LEVEL", "ERROR")
        clear_settings()
        log.reset_logger()
        assert log.get_logger().level == logging.ERROR


class TestHelpers:
    """Tests for the module-level helpers."""

    def test_warn_and_error(self, caplog):
        """warn() and error() log at their levels."""
        log.get_logger()
        with caplog.at_level(logging.WARNING, logger="gridcore"):
            log.warn("careful")
            log.error("broken")
        levels = [r.levelname for r in caplog.records]
        assert levels == ["WARNING", "ERROR"]

    def test_debug_hidden_by_default(self, caplog):
        """debug() is filtered at the default level."""
        log.get_logger()
        log.debug("noise")
        assert "noise" not in caplog.text

    def test_set_level_accepts_names(self):
        """set_level() accepts level names."""
        log.set_level("info")
        assert log.get_logger().level == logging.INFO

    def test_enable_debug(self, caplog):
        """enable_debug() lets debug messages through."""
        log.enable_debug()
        log.debug("details")
        assert "details" in caplog.text

    def test_log_callback_error(self, caplog):
        """Callback failures are logged with the traceback."""
        log.get_logger()
        try:
            raise KeyError("missing")
        except KeyError as exc:
            log.log_callback_error("aggregation", "price", exc)
        record = caplog.records[-1]
        assert record.levelname == "ERROR"
        assert "aggregation callback for 'price' failed" in record.getMessage()
        assert record.exc_info is not None
