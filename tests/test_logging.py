"""Tests for logging configuration."""

import json
import logging

import pytest

from stacknote.core.logging import JSONFormatter, get_logger, setup_logging


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="stacknote.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_standard_fields(self):
        entry = json.loads(JSONFormatter().format(_record("hello")))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "stacknote.test"
        assert entry["message"] == "hello"
        assert "timestamp" in entry

    def test_extra_context_is_merged(self):
        entry = json.loads(
            JSONFormatter().format(_record("revoked", user_id="abc", reason="logout"))
        )

        assert entry["user_id"] == "abc"
        assert entry["reason"] == "logout"
        # Internal LogRecord attributes are not leaked
        assert "pathname" not in entry
        assert "lineno" not in entry

    def test_exception_is_formatted(self):
        try:
            raise ValueError("boom")
        except ValueError:
            import sys

            record = _record("failed")
            record.exc_info = sys.exc_info()

        entry = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in entry["exception"]


def test_get_logger_prefix():
    assert get_logger("main").name == "stacknote.main"


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    saved = (root.handlers[:], root.level)
    names = ("uvicorn.access", "sqlalchemy.engine")
    levels = {name: logging.getLogger(name).level for name in names}
    yield
    root.handlers, root.level = saved
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


class TestSetupLogging:
    def test_structured_format(self, restore_logging):
        setup_logging("INFO", "structured")

        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_dev_format_debug_enables_sql(self, restore_logging):
        setup_logging("debug", "dev")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert not isinstance(root.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("sqlalchemy.engine").level == logging.DEBUG

    def test_unknown_level(self, restore_logging):
        with pytest.raises(ValueError, match="Unknown log level"):
            setup_logging("LOUD")
