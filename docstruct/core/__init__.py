"""
Core domain layer for docstruct.

Exports: exception hierarchy; document_processing subpackage holds the pipeline.
"""

from .exceptions import (
    DocStructException,
    DocumentProcessingError,
    ParsingError,
    PipelineCancelledError,
    UnsupportedFormatError,
    ValidationError,
)

__all__ = [
    "DocStructException",
    "DocumentProcessingError",
    "ParsingError",
    "PipelineCancelledError",
    "UnsupportedFormatError",
    "ValidationError",
]
