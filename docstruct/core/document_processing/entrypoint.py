"""
Document pipeline orchestrator.

Coordinates paragraph extraction and asset extraction (concurrently), then
asset anchoring, then chunking. The field sanitizer is exposed for storage
collaborators that consume the result.

Dependencies: All task modules, configs
System role: Pipeline orchestration (coordinates only)
"""

import hashlib
import logging
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from docstruct.core.exceptions import DocStructException, ParsingError, PipelineCancelledError
from docstruct.observability.log_utils import log_exception_with_context, log_with_context
from docstruct.observability.logger import configure_logging

from .configs import (
    DocumentPipelineSettings,
    get_pipeline_settings,
)
from .models import AnchorMap, Asset, BatchFailure, PipelineResult, StructuredDocument
from .tasks import (
    AnchoringTask,
    AssetExtractionTask,
    ChunkingTask,
    ContainerFormat,
    FieldSanitizer,
    ParsingTask,
    open_container,
)

logger = logging.getLogger(__name__)


def generate_document_id(content: bytes) -> str:
    """
    Generate a deterministic document ID from content.

    Args:
        content: Raw document bytes

    Returns:
        str: SHA-256 hash prefix (16 chars)
    """
    return hashlib.sha256(content).hexdigest()[:16]


class DocumentPipeline:
    """Orchestrate document ingestion: extract (paragraphs || assets) -> anchor -> chunk."""

    def __init__(self, settings: DocumentPipelineSettings | None = None) -> None:
        """
        Initialize pipeline with configuration.

        Args:
            settings: Pipeline settings (uses defaults if None)
        """
        self._settings = settings or get_pipeline_settings()

        self._parsing_task = ParsingTask(
            include_tables=self._settings.include_tables,
            include_headers_footers=self._settings.include_headers_footers,
            heading_max_chars=self._settings.heading_max_chars,
        )
        self._asset_extraction_task = AssetExtractionTask()
        self._anchoring_task = AnchoringTask(
            context_paragraphs=self._settings.context_paragraphs,
            context_max_chars=self._settings.context_max_chars,
        )
        self._chunking_task = ChunkingTask(
            chunk_size=self._settings.chunk_size,
            heading_split_depth=self._settings.heading_split_depth,
        )
        self._sanitizer = FieldSanitizer(
            embedding_dimension=self._settings.embedding_dimension,
        )

    @property
    def settings(self) -> DocumentPipelineSettings:
        return self._settings

    @property
    def sanitizer(self) -> FieldSanitizer:
        return self._sanitizer

    def process(
        self,
        content: bytes,
        container_format: str | ContainerFormat = ContainerFormat.DOCX,
        file_name: str | None = None,
        document_id: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> PipelineResult:
        """
        Process document bytes through the full pipeline.

        Args:
            content: Raw container bytes
            container_format: Declared container format ("docx", ".docx", or MIME type)
            file_name: Optional source file name, carried into the result
            document_id: Optional document ID (content hash prefix if None)
            cancel_event: Optional event checked between stages

        Returns:
            PipelineResult: Chunks, unassigned assets, and counts

        Raises:
            UnsupportedFormatError: Unsupported declared format or unreadable container
            ParsingError: Container could not be opened
            PipelineCancelledError: cancel_event was set before a stage started
        """
        start_time = time.perf_counter()
        fmt = ContainerFormat.parse(container_format)
        doc_id = document_id or generate_document_id(content or b"")

        try:
            self._check_cancelled(cancel_event, "extraction", doc_id)
            structured, assets = self._extract(content, fmt)

            self._check_cancelled(cancel_event, "anchoring", doc_id)
            if assets:
                anchor_map = self._anchoring_task.resolve(structured.paragraphs, assets)
            else:
                anchor_map = AnchorMap()

            self._check_cancelled(cancel_event, "chunking", doc_id)
            chunks = self._chunking_task.chunk(structured.paragraphs, anchor_map)

        except DocStructException as e:
            e.details.setdefault("document_id", doc_id)
            log_exception_with_context(
                logger,
                "Document processing failed",
                e,
                level=logging.WARNING if isinstance(e, PipelineCancelledError) else logging.ERROR,
                document_id=doc_id,
                file_name=file_name,
            )
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000

        log_with_context(
            logger,
            logging.INFO,
            "Document processed",
            document_id=doc_id,
            paragraph_count=len(structured),
            asset_count=len(assets),
            chunk_count=len(chunks),
            processing_time_ms=round(elapsed_ms, 2),
        )

        return PipelineResult(
            document_id=doc_id,
            file_name=file_name,
            properties=structured.properties,
            chunks=chunks,
            unassigned_assets=anchor_map.unassigned,
            paragraph_count=len(structured),
            asset_count=len(assets),
            chunk_count=len(chunks),
            processing_time_ms=elapsed_ms,
        )

    def process_file(
        self,
        file_path: str | Path,
        document_id: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> PipelineResult:
        """
        Read a local file and process it, deriving the format from its suffix.

        Args:
            file_path: Path to the document
            document_id: Optional document ID
            cancel_event: Optional event checked between stages

        Returns:
            PipelineResult: Processing result

        Raises:
            ParsingError: When the file does not exist
            UnsupportedFormatError: When the suffix or content is not supported
        """
        path = Path(file_path)
        if not path.is_file():
            raise ParsingError(f"File not found: {file_path}", document_id=document_id)

        return self.process(
            path.read_bytes(),
            container_format=path.suffix,
            file_name=path.name,
            document_id=document_id,
            cancel_event=cancel_event,
        )

    def process_batch(
        self,
        file_paths: list[str | Path],
        cancel_event: threading.Event | None = None,
    ) -> list[PipelineResult | BatchFailure]:
        """
        Process multiple documents concurrently.

        A document failing with a pipeline error is reported as a
        BatchFailure in its slot; the other documents are unaffected.

        Args:
            file_paths: List of document paths
            cancel_event: Optional event shared by every document

        Returns:
            list[PipelineResult | BatchFailure]: One entry per path, in input order
        """
        if not file_paths:
            return []

        workers = min(self._settings.max_workers, len(file_paths))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="docstruct-batch") as executor:
            results = list(
                executor.map(
                    lambda path: self._process_batch_item(path, cancel_event),
                    file_paths,
                )
            )

        failed = sum(1 for result in results if isinstance(result, BatchFailure))
        log_with_context(
            logger,
            logging.INFO,
            "Batch processed",
            document_count=len(results),
            failed_count=failed,
        )
        return results

    def _process_batch_item(
        self,
        file_path: str | Path,
        cancel_event: threading.Event | None,
    ) -> PipelineResult | BatchFailure:
        try:
            return self.process_file(file_path, cancel_event=cancel_event)
        except DocStructException as e:
            return BatchFailure(
                file_path=str(file_path),
                error_type=type(e).__name__,
                message=e.message,
                details=e.details,
            )

    def _extract(
        self,
        content: bytes,
        fmt: ContainerFormat,
    ) -> tuple[StructuredDocument, list[Asset]]:
        """Run paragraph and asset extraction, concurrently when enabled."""
        if not self._settings.extract_assets:
            return self._parsing_task.parse(content, fmt), []

        if not self._settings.parallel_extraction:
            document = open_container(content, fmt)
            return (
                self._parsing_task.parse_document(document),
                self._asset_extraction_task.extract_document(document),
            )

        # Each worker opens its own container; python-docx objects are not shared across threads
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="docstruct-extract") as executor:
            paragraphs_future = executor.submit(self._parsing_task.parse, content, fmt)
            assets_future = executor.submit(self._asset_extraction_task.extract, content, fmt)
            return paragraphs_future.result(), assets_future.result()

    @staticmethod
    def _check_cancelled(
        cancel_event: threading.Event | None,
        stage: str,
        document_id: str,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise PipelineCancelledError(stage, document_id=document_id)


if __name__ == "__main__":
    settings = get_pipeline_settings()
    configure_logging(settings.log_level)

    if len(sys.argv) < 2:
        print("usage: python -m docstruct.core.document_processing.entrypoint <file.docx>")
        sys.exit(2)

    pipeline = DocumentPipeline(settings)
    result = pipeline.process_file(sys.argv[1])
    print(
        result.model_dump_json(
            indent=2,
            exclude={
                "chunks": {"__all__": {"assets": {"__all__": {"raw_bytes"}}}},
                "unassigned_assets": {"__all__": {"raw_bytes"}},
            },
        )
    )
