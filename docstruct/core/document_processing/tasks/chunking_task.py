"""
Heading-aware paragraph chunking task.

Partitions the ordered paragraph sequence into size-bounded chunks in a
single forward pass. Chunks never split a paragraph, close before a
paragraph that would overflow the budget, and close right after a shallow
heading.

Dependencies: pydantic models
System role: Fourth stage of document ingestion pipeline
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from docstruct.core.exceptions import ValidationError
from docstruct.observability.log_utils import log_with_context

from ..models import AnchorMap, Asset, Chunk, ChunkMetadata, Paragraph

logger = logging.getLogger(__name__)


def _heading_text(paragraph: Paragraph) -> str | None:
    if paragraph.is_heading and paragraph.text.strip():
        return paragraph.text.strip()
    return None


@dataclass(frozen=True)
class ChunkBuilder:
    """Immutable accumulator for one chunk; every append returns a new builder."""

    start_index: int | None = None
    end_index: int | None = None
    text_parts: tuple[str, ...] = ()
    length: int = 0
    assets: tuple[Asset, ...] = ()
    paragraph_ids: tuple[int, ...] = ()
    contains_heading: bool = False
    asset_indices: frozenset[int] = field(default_factory=frozenset)
    section_title: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.paragraph_ids

    def append(self, paragraph: Paragraph, assets: Sequence[Asset] = ()) -> "ChunkBuilder":
        """
        Add a paragraph and its anchored assets.

        The paragraph contributes its text plus one newline to the length.
        Assets already present (same index) are skipped. A chunk that starts
        before any heading takes its first heading as the section title.
        """
        new_assets = list(self.assets)
        seen = set(self.asset_indices)
        for asset in assets:
            if asset.index not in seen:
                seen.add(asset.index)
                new_assets.append(asset)

        return replace(
            self,
            start_index=paragraph.id if self.start_index is None else self.start_index,
            end_index=paragraph.id,
            text_parts=self.text_parts + (paragraph.text + "\n",),
            length=self.length + len(paragraph.text) + 1,
            assets=tuple(new_assets),
            paragraph_ids=self.paragraph_ids + (paragraph.id,),
            contains_heading=self.contains_heading or paragraph.is_heading,
            asset_indices=frozenset(seen),
            section_title=self.section_title or _heading_text(paragraph),
        )

    def build(self, chunk_id: int, chunk_size: int, heading_forced: bool = False) -> Chunk:
        """Finalize into a Chunk; the builder itself is unchanged."""
        if self.is_empty:
            raise ValueError("Cannot build a chunk from an empty builder")

        text = "".join(self.text_parts).strip()
        return Chunk(
            chunk_id=chunk_id,
            text=text,
            start_paragraph_index=self.start_index,
            end_paragraph_index=self.end_index,
            assets=list(self.assets),
            word_count=len(text.split()),
            char_count=len(text),
            metadata=ChunkMetadata(
                contains_heading=self.contains_heading,
                asset_count=len(self.assets),
                paragraph_ids=list(self.paragraph_ids),
                oversized=len(self.paragraph_ids) == 1 and len(text) > chunk_size,
                heading_forced=heading_forced,
                section_title=self.section_title,
            ),
        )


class ChunkingTask:
    """Split a paragraph sequence into heading-respecting, size-bounded chunks."""

    def __init__(self, chunk_size: int = 1000, heading_split_depth: int = 2) -> None:
        """
        Initialize chunking task.

        Args:
            chunk_size: Maximum chunk size in characters, newline separators included
            heading_split_depth: Headings at depth 1..N close the current chunk

        Raises:
            ValidationError: When chunk_size is not positive or heading_split_depth is negative
        """
        if chunk_size <= 0:
            raise ValidationError("chunk_size must be positive", field="chunk_size")
        if heading_split_depth < 0:
            raise ValidationError("heading_split_depth cannot be negative", field="heading_split_depth")

        self._chunk_size = chunk_size
        self._heading_split_depth = heading_split_depth

    def chunk(
        self,
        paragraphs: Sequence[Paragraph],
        anchor_map: AnchorMap | None = None,
    ) -> list[Chunk]:
        """
        Partition paragraphs into chunks.

        Args:
            paragraphs: Ordered paragraph sequence
            anchor_map: Positioned assets per paragraph (no assets when None)

        Returns:
            list[Chunk]: Contiguous, non-overlapping chunks covering every paragraph
        """
        anchor_map = anchor_map or AnchorMap()
        chunks: list[Chunk] = []
        builder = ChunkBuilder()
        section_title: str | None = None

        for paragraph in paragraphs:
            piece_length = len(paragraph.text) + 1
            if not builder.is_empty and builder.length + piece_length > self._chunk_size:
                chunks.append(builder.build(len(chunks), self._chunk_size))
                builder = ChunkBuilder()

            section_title = _heading_text(paragraph) or section_title
            if builder.is_empty:
                builder = ChunkBuilder(section_title=section_title)

            builder = builder.append(paragraph, anchor_map.assets_for(paragraph.id))

            if self._forces_split(paragraph):
                chunks.append(builder.build(len(chunks), self._chunk_size, heading_forced=True))
                builder = ChunkBuilder()

        if not builder.is_empty:
            chunks.append(builder.build(len(chunks), self._chunk_size))

        log_with_context(
            logger,
            logging.INFO,
            "Chunked paragraphs",
            paragraph_count=len(paragraphs),
            chunk_count=len(chunks),
            oversized_count=sum(1 for c in chunks if c.metadata.oversized),
        )
        return chunks

    def _forces_split(self, paragraph: Paragraph) -> bool:
        return paragraph.is_heading and 1 <= paragraph.heading_level <= self._heading_split_depth
