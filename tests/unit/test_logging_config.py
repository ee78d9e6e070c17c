"""logging_config モジュールのテスト"""

import json
import logging
import sys
from datetime import date
from unittest.mock import patch

import pytest
from familyfin.logging_config import (
    CloudLoggingFormatter,
    TextFormatter,
    log_fields,
    setup_logging,
)


def _record(message="reminder sent", level=logging.INFO, exc_info=None, **fields):
    record = logging.LogRecord(
        name="familyfin.services.shopping_alerts",
        level=level,
        pathname="",
        lineno=0,
        msg=message,
        args=(),
        exc_info=exc_info,
    )
    if fields:
        record.__dict__.update(log_fields(**fields))
    return record


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestCloudLoggingFormatter:
    @pytest.mark.parametrize("level", [logging.DEBUG, logging.WARNING, logging.CRITICAL])
    def test_severity_is_level_name(self, level):
        parsed = json.loads(CloudLoggingFormatter().format(_record(level=level)))
        assert parsed["severity"] == logging.getLevelName(level)

    def test_fields_flattened(self):
        # Arrange
        record = _record(family_id="fam-1", sent=2)

        # Act
        parsed = json.loads(CloudLoggingFormatter().format(record))

        # Assert
        assert parsed["message"] == "reminder sent"
        assert parsed["logger"] == "familyfin.services.shopping_alerts"
        assert parsed["family_id"] == "fam-1"
        assert parsed["sent"] == 2
        assert "stack_trace" not in parsed

    def test_stack_trace_included(self):
        try:
            raise RuntimeError("fcm down")
        except RuntimeError:
            exc_info = sys.exc_info()

        parsed = json.loads(CloudLoggingFormatter().format(_record(exc_info=exc_info)))

        assert "RuntimeError: fcm down" in parsed["stack_trace"]

    def test_non_json_values_stringified(self):
        record = _record(reminder_at=date(2026, 3, 15))
        parsed = json.loads(CloudLoggingFormatter().format(record))
        assert parsed["reminder_at"] == "2026-03-15"

    def test_non_ascii_kept(self):
        output = CloudLoggingFormatter().format(_record("買い物リマインダー ₹"))
        assert "買い物リマインダー ₹" in output


class TestTextFormatter:
    def test_fields_appended(self):
        line = TextFormatter().format(_record(family_id="fam-1", item_id="i1"))
        assert line.endswith("reminder sent [family_id=fam-1 item_id=i1]")

    def test_plain_message_unchanged(self):
        line = TextFormatter().format(_record())
        assert line.endswith("familyfin.services.shopping_alerts: reminder sent")


class TestSetupLogging:
    def test_json_on_cloud_run(self):
        with patch.dict("os.environ", {"K_SERVICE": "familyfin-api"}):
            setup_logging()

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, CloudLoggingFormatter)

    def test_text_locally(self):
        with patch.dict("os.environ", {}, clear=True):
            setup_logging()

        assert isinstance(logging.getLogger().handlers[0].formatter, TextFormatter)

    def test_explicit_level_wins_over_env(self):
        with patch.dict("os.environ", {"LOG_LEVEL": "ERROR"}):
            setup_logging("debug")

        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        with patch.dict("os.environ", {"LOG_LEVEL": "chatty"}):
            setup_logging()

        assert logging.getLogger().level == logging.INFO

    def test_sdk_loggers_quieted(self):
        setup_logging()
        assert logging.getLogger("grpc").level == logging.WARNING

    def test_repeated_calls_keep_one_handler(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1
