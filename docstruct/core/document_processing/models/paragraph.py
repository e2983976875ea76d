"""
Paragraph domain model for the structural extractor.

Represents one ordered text block of a document with its classification,
formatting snapshot, run list, and offsets into the flattened full text.

Dependencies: pydantic
System role: Output of ParsingTask, input of anchoring and chunking
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ParagraphType(str, Enum):
    """Structural role of a text block."""

    NORMAL = "normal"
    HEADING = "heading"
    LIST_ITEM = "list_item"
    TABLE = "table"
    HEADER = "header"
    FOOTER = "footer"


class ParagraphStyle(BaseModel):
    """Formatting snapshot of a paragraph; unset values stay None."""

    model_config = ConfigDict(frozen=True)

    style_name: str | None = Field(default=None, description="Display name of the paragraph style")
    style_id: str | None = Field(default=None, description="Explicit style id from the paragraph properties")
    outline_level: int | None = Field(default=None, description="Explicit outline level (0-based)")
    alignment: str | None = Field(default=None, description="Paragraph alignment name")
    first_line_indent: float | None = Field(default=None, description="First line indent in points")
    left_indent: float | None = Field(default=None, description="Left indent in points")
    spacing_before: float | None = Field(default=None, description="Space before in points")
    spacing_after: float | None = Field(default=None, description="Space after in points")
    line_spacing: float | None = Field(default=None, description="Line spacing (multiple or points)")
    extra: dict[str, Any] = Field(default_factory=dict, description="Format-specific attributes")


class RunInfo(BaseModel):
    """Formatting run inside a paragraph."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, description="Run position within the paragraph")
    text: str = Field(default="", description="Run text")
    font_family: str | None = None
    font_size: float | None = Field(default=None, description="Font size in points")
    bold: bool = False
    italic: bool = False
    underlined: bool = False
    embedded_ids: list[str] = Field(
        default_factory=list,
        description="Relationship ids of pictures referenced inside the run",
    )
    embedded_digests: list[str] = Field(
        default_factory=list,
        description="SHA-256 digests of the picture bytes referenced inside the run",
    )


class Paragraph(BaseModel):
    """Ordered text block with offsets into the document full text."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=0, description="Sequence position, unique and insertion ordered")
    text: str = Field(default="", description="Trimmed paragraph text")
    start_offset: int = Field(ge=0, description="Offset of the first character in the full text")
    end_offset: int = Field(ge=0, description="Offset one past the last character")
    type: ParagraphType = ParagraphType.NORMAL
    heading_level: int = Field(default=0, ge=0, description="0 when not a heading, 1..N otherwise")
    style: ParagraphStyle = Field(default_factory=ParagraphStyle)
    runs: list[RunInfo] = Field(default_factory=list)
    markup: str = Field(
        default="",
        exclude=True,
        repr=False,
        description="Serialized block XML, consumed by anchoring strategies",
    )

    @model_validator(mode="after")
    def _check_offsets_and_level(self) -> "Paragraph":
        if self.start_offset > self.end_offset:
            raise ValueError(
                f"start_offset {self.start_offset} exceeds end_offset {self.end_offset}"
            )
        if self.heading_level > 0 and self.type is not ParagraphType.HEADING:
            raise ValueError("heading_level > 0 requires type == heading")
        return self

    @property
    def is_heading(self) -> bool:
        return self.type is ParagraphType.HEADING

    def run_offset(self, run_index: int) -> int:
        """
        Character offset of a run inside the paragraph text.

        Sums the text lengths of all runs before run_index.

        Args:
            run_index: Position of the run

        Returns:
            int: Offset, capped at the paragraph text length
        """
        offset = sum(len(run.text) for run in self.runs if run.index < run_index)
        return min(offset, len(self.text))


class StructuredDocument(BaseModel):
    """Ordered paragraph sequence plus the flattened full text."""

    model_config = ConfigDict(frozen=True)

    paragraphs: list[Paragraph] = Field(default_factory=list)
    full_text: str = Field(default="", description="Paragraph texts each followed by a newline")
    properties: dict[str, str] = Field(
        default_factory=dict,
        description="Non-empty core properties: title, subject, creator, description",
    )

    @model_validator(mode="after")
    def _check_sequence(self) -> "StructuredDocument":
        previous_end = 0
        for expected_id, paragraph in enumerate(self.paragraphs):
            if paragraph.id != expected_id:
                raise ValueError(f"paragraph id {paragraph.id} out of sequence at {expected_id}")
            if paragraph.start_offset < previous_end:
                raise ValueError(f"paragraph {paragraph.id} offsets overlap its predecessor")
            previous_end = paragraph.end_offset
        return self

    def __len__(self) -> int:
        return len(self.paragraphs)
