"""
Exception hierarchy for docstruct.

Fatal errors abort a single document; recoverable per-block, per-asset and
per-strategy failures are logged by the tasks and never raised.

Dependencies: None (pure domain layer)
System role: Document-level failures surfaced by DocumentPipeline
"""

from typing import Any


class DocStructException(Exception):
    """Base exception; details carry document_id, stage, field or file_type."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(DocStructException):
    """Invalid pipeline option, e.g. a non-positive chunk_size."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class DocumentProcessingError(DocStructException):
    """Failure tied to one document."""

    def __init__(
        self,
        message: str,
        document_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if document_id:
            details["document_id"] = document_id
        super().__init__(message, details)


class ParsingError(DocumentProcessingError):
    """The container could not be opened or read."""

    def __init__(
        self,
        message: str,
        document_id: str | None = None,
        file_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Args:
            message: Error message
            document_id: Document being opened, when known
            file_type: Declared container format
            details: Additional context
        """
        details = details or {}
        if file_type:
            details["file_type"] = file_type
        super().__init__(message, document_id, details)


class UnsupportedFormatError(ParsingError):
    """Declared format is not docx, or the bytes are not a docx package."""


class PipelineCancelledError(DocumentProcessingError):
    """The cancel event was set before a stage started."""

    def __init__(
        self,
        stage: str,
        document_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["stage"] = stage
        self.stage = stage
        super().__init__(f"Processing cancelled before stage: {stage}", document_id, details)
