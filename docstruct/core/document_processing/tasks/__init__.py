"""
Task modules for document processing pipeline.

Exports: ParsingTask, AssetExtractionTask, AnchoringTask, ChunkingTask, FieldSanitizer,
container helpers, and the resolution strategies
"""

from .anchoring_task import AnchoringTask
from .asset_extraction_task import (
    AssetEnumerator,
    AssetExtractionTask,
    InlineShapeEnumerator,
    PackagePartEnumerator,
    RelationshipEnumerator,
)
from .chunking_task import ChunkBuilder, ChunkingTask
from .classification import ParagraphClassifier
from .container import ContainerFormat, open_container
from .parsing_task import ParsingTask
from .resolution_strategies import (
    DirectReferenceStrategy,
    ResolutionStrategy,
    RunEmbeddingStrategy,
    SequentialFallbackStrategy,
    StructuralDrawingStrategy,
)
from .sanitizing_task import FieldSanitizer

__all__ = [
    "ContainerFormat",
    "open_container",
    "ParagraphClassifier",
    "ParsingTask",
    "AssetEnumerator",
    "RelationshipEnumerator",
    "InlineShapeEnumerator",
    "PackagePartEnumerator",
    "AssetExtractionTask",
    "ResolutionStrategy",
    "DirectReferenceStrategy",
    "RunEmbeddingStrategy",
    "StructuralDrawingStrategy",
    "SequentialFallbackStrategy",
    "AnchoringTask",
    "ChunkBuilder",
    "ChunkingTask",
    "FieldSanitizer",
]
