"""
Chunk domain model for document processing pipeline.

Represents a contiguous paragraph range with its text, anchored assets,
and provenance metadata.

Dependencies: pydantic
System role: Data structure for retrieval chunks in ingestion pipeline
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .asset import Asset


class ChunkMetadata(BaseModel):
    """Provenance metadata attached to every chunk."""

    model_config = ConfigDict(frozen=True)

    contains_heading: bool = Field(default=False, description="At least one heading paragraph in range")
    asset_count: int = Field(default=0, ge=0)
    paragraph_ids: list[int] = Field(default_factory=list, description="Paragraph ids in range, in order")
    oversized: bool = Field(default=False, description="Single paragraph beyond the size budget")
    heading_forced: bool = Field(default=False, description="Closed by a structural heading boundary")
    section_title: str | None = Field(default=None, description="Heading in effect where the chunk starts")
    extra: dict[str, Any] = Field(default_factory=dict)


class Chunk(BaseModel):
    """Retrieval chunk over an inclusive paragraph range."""

    model_config = ConfigDict(frozen=True)

    chunk_id: int = Field(ge=0, description="Sequential chunk number, 0-based")
    text: str = Field(description="Trimmed concatenation of paragraph texts")
    start_paragraph_index: int = Field(ge=0)
    end_paragraph_index: int = Field(ge=0)
    assets: list[Asset] = Field(default_factory=list, description="Anchored assets, unique by index")
    word_count: int = Field(default=0, ge=0)
    char_count: int = Field(default=0, ge=0)
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)

    @model_validator(mode="after")
    def _check_range(self) -> "Chunk":
        if self.start_paragraph_index > self.end_paragraph_index:
            raise ValueError(
                f"start_paragraph_index {self.start_paragraph_index} exceeds "
                f"end_paragraph_index {self.end_paragraph_index}"
            )
        return self

    @property
    def paragraph_count(self) -> int:
        return self.end_paragraph_index - self.start_paragraph_index + 1
