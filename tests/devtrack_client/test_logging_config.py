"""
Tests for logging configuration.
"""

import json
import logging
import sys

import pytest

from devtrack_client.logging_config import (
    HumanReadableFormatter,
    StructuredFormatter,
    level_for_verbosity,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestVerbosity:
    """Tests for level_for_verbosity."""

    @pytest.mark.parametrize(
        "count, level",
        [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
    )
    def test_levels(self, count, level):
        assert level_for_verbosity(count) == level


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_console_handler_on_stderr(self, restore_root_logger):
        setup_logging(verbosity=1)

        console = restore_root_logger.handlers[0]
        assert console.level == logging.INFO
        assert console.stream is sys.stderr
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_json_file_log(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "devtrack.log"
        setup_logging(verbosity=0, log_file=log_file, use_json=True)

        logging.getLogger("devtrack.test").debug("hello file")
        for handler in restore_root_logger.handlers:
            handler.flush()

        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert any(r["message"] == "hello file" and r["level"] == "DEBUG" for r in records)


class TestFormatters:
    """Tests for the formatters."""

    def make_record(self, level=logging.WARNING):
        return logging.LogRecord("devtrack", level, __file__, 1, "careful", None, None)

    def test_colors_do_not_leak_into_record(self):
        record = self.make_record()
        output = HumanReadableFormatter(use_colors=True).format(record)

        assert "\033[33mWARNING\033[0m careful" == output
        assert record.levelname == "WARNING"

    def test_structured(self):
        data = json.loads(StructuredFormatter().format(self.make_record(logging.ERROR)))
        assert data["level"] == "ERROR"
        assert data["message"] == "careful"
        assert data["logger"] == "devtrack"
