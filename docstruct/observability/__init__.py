"""
Observability helpers.

Exports: configure_logging, safe_log_value, log_with_context,
log_exception_with_context
"""

from .log_utils import log_exception_with_context, log_with_context, safe_log_value
from .logger import configure_logging

__all__ = [
    "configure_logging",
    "safe_log_value",
    "log_with_context",
    "log_exception_with_context",
]
