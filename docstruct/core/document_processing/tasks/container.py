"""
Office container loading.

Validates the declared container format and opens WordprocessingML bytes
with python-docx. Shared XML namespace constants live here so extraction and
anchoring read the same markup the same way.

Dependencies: python-docx
System role: Entry point of every extraction stage
"""

import hashlib
import io
import logging
import zipfile
from enum import Enum

import docx
from docx.document import Document as DocxDocument
from docx.opc.exceptions import PackageNotFoundError

from docstruct.core.exceptions import ParsingError, UnsupportedFormatError

logger = logging.getLogger(__name__)

WORDPROCESSINGML_MIME = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)

NAMESPACES = {
    "w": "http://schemas.openxmlformats.org/wordprocessingml/2006/main",
    "wp": "http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing",
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
    "pic": "http://schemas.openxmlformats.org/drawingml/2006/picture",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "v": "urn:schemas-microsoft-com:vml",
}


def clark(prefixed: str) -> str:
    """Convert 'w:p' style names to lxml '{namespace}p' names."""
    prefix, local = prefixed.split(":")
    return f"{{{NAMESPACES[prefix]}}}{local}"


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class ContainerFormat(str, Enum):
    """Supported office container formats."""

    DOCX = "docx"

    @classmethod
    def parse(cls, value: "str | ContainerFormat | None") -> "ContainerFormat":
        """
        Resolve a declared format into a ContainerFormat.

        Accepts the bare name, a file suffix, or the MIME type.

        Args:
            value: Declared format, e.g. "docx", ".docx", or the WordprocessingML MIME type

        Returns:
            ContainerFormat: Resolved format

        Raises:
            UnsupportedFormatError: When the format is unknown or missing
        """
        if isinstance(value, ContainerFormat):
            return value

        normalized = (value or "").strip().lower()
        if normalized == WORDPROCESSINGML_MIME:
            return cls.DOCX
        normalized = normalized.lstrip(".")
        for member in cls:
            if member.value == normalized:
                return member

        raise UnsupportedFormatError(
            f"Unsupported container format: {value!r}. Only docx is supported.",
            file_type=str(value),
        )


def open_container(
    content: bytes,
    container_format: "str | ContainerFormat" = ContainerFormat.DOCX,
) -> DocxDocument:
    """
    Open document bytes as a python-docx Document.

    Args:
        content: Raw container bytes
        container_format: Declared container format

    Returns:
        docx.document.Document: Opened document

    Raises:
        UnsupportedFormatError: Empty input, unknown format, or bytes that are not a Word container
        ParsingError: Any other failure while opening the package
    """
    fmt = ContainerFormat.parse(container_format)

    if not content:
        raise UnsupportedFormatError("Document content is empty", file_type=fmt.value)

    try:
        return docx.Document(io.BytesIO(content))
    except (zipfile.BadZipFile, PackageNotFoundError, KeyError, ValueError) as e:
        raise UnsupportedFormatError(
            f"Content is not a readable {fmt.value} container: {e}",
            file_type=fmt.value,
            details={"size_bytes": len(content)},
        ) from e
    except Exception as e:
        raise ParsingError(
            f"Failed to open {fmt.value} container: {e}",
            file_type=fmt.value,
        ) from e
