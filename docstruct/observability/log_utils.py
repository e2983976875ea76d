"""
Structured logging helpers.

Context values are flattened to short strings before they reach a record, so
image payloads and paragraph lists never end up in log lines.

Dependencies: logging (stdlib)
System role: Logging helper functions used by every pipeline task
"""

import logging
from typing import Any


def safe_log_value(value: Any, max_length: int = 500) -> str:
    """
    Convert a context value to a bounded string.

    Bytes and collections are summarized by size; long strings are truncated.
    Never raises.
    """
    try:
        if value is None:
            return "None"
        if isinstance(value, str):
            val_str = value
        elif isinstance(value, (bytes, bytearray)):
            val_str = f"bytes({len(value)})"
        elif isinstance(value, (list, tuple)):
            val_str = f"{type(value).__name__}({len(value)} items)"
        elif isinstance(value, dict):
            val_str = f"dict({len(value)} keys)"
        else:
            val_str = str(value)

        if len(val_str) > max_length:
            return val_str[:max_length] + f"... (truncated, {len(val_str)} total)"
        return val_str
    except Exception as e:
        return f"<unable to log: {type(e).__name__}>"


def log_with_context(logger: logging.Logger, level: int, message: str, **context) -> None:
    """Log a message with context keys attached as record attributes."""
    logger.log(level, message, extra={key: safe_log_value(val) for key, val in context.items()})


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    level: int = logging.ERROR,
    **context,
) -> None:
    """
    Log an exception with its type, message and traceback.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception being reported
        level: Log level; WARNING for recoverable per-item failures
        **context: document_id, paragraph_index and similar keys
    """
    extra = {key: safe_log_value(val) for key, val in context.items()}
    extra["error_type"] = type(exc).__name__
    extra["error_msg"] = str(exc)
    logger.log(level, message, exc_info=exc, extra=extra)
