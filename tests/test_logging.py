"""Tests for structured logging setup."""

import json
import logging

import pytest
import structlog


@pytest.fixture
def restore_logging():
    """Undo handler and structlog changes made by setup_logging."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_server_loggers_propagate_to_root(self, restore_logging):
        """Test that uvicorn loggers lose their own handlers."""
        from shared.logging import SERVER_LOGGERS, setup_logging

        logging.getLogger("uvicorn.access").addHandler(logging.NullHandler())
        setup_logging("INFO")

        for name in SERVER_LOGGERS:
            server_logger = logging.getLogger(name)
            assert server_logger.handlers == []
            assert server_logger.propagate

    def test_repeated_setup_keeps_one_handler(self, restore_logging):
        """Test that calling setup twice does not duplicate output."""
        from shared.logging import setup_logging

        setup_logging("INFO")
        setup_logging("DEBUG")

        handlers = [
            h for h in logging.getLogger().handlers
            if isinstance(h.formatter, structlog.stdlib.ProcessorFormatter)
        ]
        assert len(handlers) == 1
        assert logging.getLogger().level == logging.DEBUG

    def test_stdlib_records_rendered_as_json(self, restore_logging, capsys):
        """Test that server log lines share the application's JSON format."""
        from shared.logging import bind_context, clear_context, setup_logging

        setup_logging("INFO", json_output=True)
        bind_context(request_id="req-1")
        try:
            logging.getLogger("uvicorn.error").info("Server ready")
        finally:
            clear_context()

        line = capsys.readouterr().out.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "Server ready"
        assert event["level"] == "info"
        assert event["logger"] == "uvicorn.error"
        assert event["request_id"] == "req-1"
        assert "timestamp" in event

    def test_application_events_rendered_as_json(self, restore_logging, capsys):
        """Test key-value events from structlog loggers."""
        from shared.logging import get_logger, setup_logging

        setup_logging("INFO", json_output=True)
        get_logger("knowledge_base.audit", component="store").info("Article inserted", article_id=3)

        event = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert event["event"] == "Article inserted"
        assert event["article_id"] == 3
        assert event["component"] == "store"
        assert event["logger"] == "knowledge_base.audit"

    def test_level_filtering(self, restore_logging, capsys):
        """Test that events below the configured level are dropped."""
        from shared.logging import get_logger, setup_logging

        setup_logging("WARNING", json_output=True)
        get_logger("knowledge_base.quiet").info("Hidden")
        logging.getLogger("uvicorn.error").info("Also hidden")

        assert capsys.readouterr().out == ""
