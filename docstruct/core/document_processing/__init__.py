"""
Document processing pipeline for ingestion.

Self-contained module for structuring docx documents, anchoring embedded
images, and chunking for retrieval.

Dependencies: python-docx, lxml, pydantic, pydantic_settings, langchain_core
System role: Document ingestion pipeline entrypoint
"""

from .configs import (
    DocumentPipelineSettings,
    get_pipeline_settings,
)
from .entrypoint import DocumentPipeline, generate_document_id
from .models import (
    AnchorMap,
    Asset,
    AssetPosition,
    BatchFailure,
    Chunk,
    ChunkMetadata,
    Paragraph,
    ParagraphType,
    PipelineResult,
    ResolutionMethod,
    StructuredDocument,
)
from .tasks import ContainerFormat, FieldSanitizer

__all__ = [
    "DocumentPipeline",
    "DocumentPipelineSettings",
    "get_pipeline_settings",
    "generate_document_id",
    "ContainerFormat",
    "FieldSanitizer",
    "AnchorMap",
    "Asset",
    "AssetPosition",
    "BatchFailure",
    "Chunk",
    "ChunkMetadata",
    "Paragraph",
    "ParagraphType",
    "PipelineResult",
    "ResolutionMethod",
    "StructuredDocument",
]
