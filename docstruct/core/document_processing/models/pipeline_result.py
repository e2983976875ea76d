"""
Pipeline result model for document processing.

Represents the outcome of processing a document through the pipeline.

Dependencies: pydantic
System role: Return type for DocumentPipeline.process()
"""

from typing import Any

from pydantic import BaseModel, Field

from .asset import Asset
from .chunk import Chunk


class PipelineResult(BaseModel):
    """Result of document processing pipeline execution."""

    document_id: str = Field(description="Document identifier (content hash prefix unless supplied)")
    file_name: str | None = Field(default=None, description="Source file name when known")
    properties: dict[str, str] = Field(default_factory=dict, description="Core document properties")
    chunks: list[Chunk] = Field(default_factory=list, description="Ordered retrieval chunks")
    unassigned_assets: list[Asset] = Field(
        default_factory=list,
        description="Assets no strategy could anchor to a paragraph",
    )
    paragraph_count: int = Field(default=0, ge=0)
    asset_count: int = Field(default=0, ge=0, description="Total assets discovered")
    chunk_count: int = Field(default=0, ge=0)
    processing_time_ms: float = Field(description="Total processing time in milliseconds")


class BatchFailure(BaseModel):
    """A document of a batch that failed with a pipeline error."""

    file_path: str = Field(description="Path as given to process_batch")
    error_type: str = Field(description="Exception class name")
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
