"""
Models for document processing pipeline.

Exports: Paragraph, ParagraphType, ParagraphStyle, RunInfo, StructuredDocument,
Asset, AssetPosition, ResolutionMethod, AnchorMap, Chunk, ChunkMetadata, PipelineResult, BatchFailure
"""

from .asset import AnchorMap, Asset, AssetPosition, ResolutionMethod
from .chunk import Chunk, ChunkMetadata
from .paragraph import (
    Paragraph,
    ParagraphStyle,
    ParagraphType,
    RunInfo,
    StructuredDocument,
)
from .pipeline_result import BatchFailure, PipelineResult

__all__ = [
    "Paragraph",
    "ParagraphType",
    "ParagraphStyle",
    "RunInfo",
    "StructuredDocument",
    "Asset",
    "AssetPosition",
    "ResolutionMethod",
    "AnchorMap",
    "Chunk",
    "ChunkMetadata",
    "PipelineResult",
    "BatchFailure",
]
