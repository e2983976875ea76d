"""
Configuration settings for document processing pipeline.

Provides environment-based configuration for extraction, anchoring, chunking,
and storage hand-off.

Dependencies: pydantic, pydantic_settings
System role: Centralized pipeline configuration
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DocumentPipelineSettings(BaseSettings):
    """Settings for document ingestion pipeline."""

    model_config = SettingsConfigDict(
        env_prefix="DOC_PIPELINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Chunking settings
    chunk_size: int = Field(
        default=1000,
        gt=0,
        description="Maximum chunk size in characters, newline separators included",
    )
    heading_split_depth: int = Field(
        default=2,
        ge=0,
        description="Headings at depth 1..N force a chunk boundary; 0 disables",
    )

    # Extraction settings
    extract_assets: bool = Field(
        default=True,
        description="Enumerate and anchor embedded images",
    )
    parallel_extraction: bool = Field(
        default=True,
        description="Run paragraph and asset extraction concurrently",
    )
    max_workers: int = Field(
        default=4,
        ge=1,
        description="Thread pool size for batch processing",
    )
    include_tables: bool = Field(
        default=True,
        description="Emit one table block per body table",
    )
    include_headers_footers: bool = Field(
        default=False,
        description="Append section header and footer paragraphs after the body",
    )
    heading_max_chars: int = Field(
        default=150,
        gt=0,
        description="Colon-terminated text shorter than this is treated as a heading",
    )

    # Anchoring settings
    context_paragraphs: int = Field(
        default=2,
        ge=0,
        description="Neighbouring paragraphs on each side used for asset context",
    )
    context_max_chars: int = Field(
        default=1000,
        gt=0,
        description="Upper bound on surrounding text context length",
    )

    # Storage hand-off settings
    embedding_dimension: int = Field(
        default=768,
        gt=0,
        description="Length of the zero-fallback vector used by the field sanitizer",
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level applied by the CLI entrypoint",
    )


@lru_cache
def get_pipeline_settings() -> DocumentPipelineSettings:
    """
    Get cached pipeline settings instance.

    Returns:
        DocumentPipelineSettings: Singleton settings loaded from environment
    """
    return DocumentPipelineSettings()
