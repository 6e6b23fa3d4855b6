"""Tests for core/logging.py - Logging configuration."""
import logging

import pytest


class TestLogging:
    """Test the logging module."""

    def test_get_logger_returns_logger(self):
        """get_logger should return a Logger instance."""
        from literature_tracer.core.logging import get_logger

        logger = get_logger("test_module")
        assert isinstance(logger, logging.Logger)

    def test_get_logger_uses_module_name(self):
        """Logger should use the provided module name."""
        from literature_tracer.core.logging import get_logger

        logger = get_logger("my_custom_module")
        assert logger.name == "my_custom_module"

    def test_logger_can_log_messages(self):
        """Logger should be able to log messages without error."""
        from literature_tracer.core.logging import get_logger

        logger = get_logger("test_logging")

        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")

    def test_setup_logging_sets_level(self):
        """setup_logging should configure the root log level."""
        from literature_tracer.core.logging import setup_logging

        setup_logging(level="WARNING")
        assert logging.getLogger().level == logging.WARNING

        setup_logging(level="INFO")
        assert logging.getLogger().level == logging.INFO

    def test_unknown_level_falls_back_to_info(self):
        from literature_tracer.core.logging import setup_logging

        setup_logging(level="CHATTY")
        assert logging.getLogger().level == logging.INFO

    def test_third_party_loggers_are_quieted(self):
        from literature_tracer.core.logging import setup_logging

        setup_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("openai").level == logging.WARNING
        setup_logging(level="INFO")

    def test_multiple_get_logger_calls_same_name(self):
        """Multiple calls with same name should return same logger."""
        from literature_tracer.core.logging import get_logger

        assert get_logger("same_name") is get_logger("same_name")


class TestLogDuration:
    """Test the log_duration stage timer."""

    def test_logs_stage_completion(self, caplog):
        from literature_tracer.core.logging import get_logger, log_duration

        logger = get_logger("duration_test")
        with caplog.at_level(logging.INFO, logger="duration_test"):
            with log_duration(logger, "fan-out"):
                pass

        assert any("---FAN-OUT COMPLETE in" in r.getMessage() for r in caplog.records)

    def test_logs_even_when_block_raises(self, caplog):
        from literature_tracer.core.logging import get_logger, log_duration

        logger = get_logger("duration_test")
        with caplog.at_level(logging.INFO, logger="duration_test"):
            with pytest.raises(RuntimeError):
                with log_duration(logger, "evaluate"):
                    raise RuntimeError("boom")

        assert any("---EVALUATE COMPLETE" in r.getMessage() for r in caplog.records)
