"""Tests for logging helpers.

Tests:
- Safe value conversion (bytes, collections, truncation)
- Structured context logging
- Exception logging with error type and message
- Root logger configuration
"""

import logging
import sys

import pytest

from docstruct.observability.log_utils import (
    log_exception_with_context,
    log_with_context,
    safe_log_value,
)
from docstruct.observability.logger import configure_logging


class _Unprintable:
    def __str__(self) -> str:
        raise RuntimeError("boom")


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


# ============================================================================
# safe_log_value Tests
# ============================================================================


class TestSafeLogValue:
    """Test value conversion for log context."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, "None"),
            ("doc-1", "doc-1"),
            (b"\x89PNG\r\n", "bytes(6)"),
            ([1, 2, 3], "list(3 items)"),
            ((1,), "tuple(1 items)"),
            ({"a": 1, "b": 2}, "dict(2 keys)"),
            (42, "42"),
        ],
    )
    def test_conversions(self, value, expected) -> None:
        """Should summarize blobs and collections instead of dumping them."""
        assert safe_log_value(value) == expected

    def test_truncates_long_strings(self) -> None:
        """Should cut long values and report the total length."""
        result = safe_log_value("x" * 20, max_length=5)

        assert result == "xxxxx... (truncated, 20 total)"

    def test_unprintable_value(self) -> None:
        """Should never raise for values whose str() fails."""
        assert safe_log_value(_Unprintable()) == "<unable to log: RuntimeError>"


# ============================================================================
# Context Logging Tests
# ============================================================================


class TestContextLogging:
    """Test structured logging helpers."""

    def test_log_with_context_attaches_extra(self, caplog) -> None:
        """Should attach converted context values to the record."""
        logger = logging.getLogger("docstruct.test")

        with caplog.at_level(logging.INFO, logger="docstruct.test"):
            log_with_context(logger, logging.INFO, "Document processed", document_id="abc", chunk_count=3)

        record = caplog.records[-1]
        assert record.getMessage() == "Document processed"
        assert record.document_id == "abc"
        assert record.chunk_count == "3"

    def test_log_exception_with_context(self, caplog) -> None:
        """Should record error type, message, and traceback info."""
        logger = logging.getLogger("docstruct.test")
        error = ValueError("bad relationship")

        with caplog.at_level(logging.WARNING, logger="docstruct.test"):
            log_exception_with_context(logger, "Extraction failed", error, level=logging.WARNING, part="/word/media")

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.error_type == "ValueError"
        assert record.error_msg == "bad relationship"
        assert record.part == "/word/media"
        assert record.exc_info[1] is error


# ============================================================================
# configure_logging Tests
# ============================================================================


class TestConfigureLogging:
    """Test root logger configuration."""

    def test_installs_single_stdout_handler(self, restore_root_logger) -> None:
        """Should replace existing handlers with one stdout handler."""
        configure_logging("debug")
        configure_logging("debug")

        root = restore_root_logger
        assert len(root.handlers) == 1
        assert root.handlers[0].stream is sys.stdout
        assert root.level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, restore_root_logger) -> None:
        """Should use INFO for an unrecognized level name."""
        configure_logging("verbose")

        assert restore_root_logger.level == logging.INFO

    def test_quiets_library_loggers(self, restore_root_logger) -> None:
        """Should raise python-docx and PIL loggers to WARNING."""
        configure_logging(logging.DEBUG)

        assert logging.getLogger("docx").level == logging.WARNING
        assert logging.getLogger("PIL").level == logging.WARNING
