"""
docstruct: structured ingestion of office documents for retrieval.

Exports the pipeline entrypoint and its settings; see
docstruct.core.document_processing for the individual tasks.
"""

from docstruct.core.document_processing import (
    DocumentPipeline,
    DocumentPipelineSettings,
    PipelineResult,
    get_pipeline_settings,
)

__all__ = [
    "DocumentPipeline",
    "DocumentPipelineSettings",
    "PipelineResult",
    "get_pipeline_settings",
]
