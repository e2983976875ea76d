"""
Storage field sanitizer.

Converts chunks into flat storage records and LangChain Documents whose
fields are never null: JSON fields always hold a JSON object string, text
fields fall back to the empty string, and vectors fall back to a zero vector
of the configured dimension.

Dependencies: langchain_core
System role: Hand-off between the chunk partitioner and storage collaborators
"""

import json
import logging
import math
from collections.abc import Callable, Sequence
from typing import Any

from langchain_core.documents import Document

from docstruct.core.exceptions import ValidationError
from docstruct.observability.log_utils import log_with_context

from ..models import Asset, Chunk

logger = logging.getLogger(__name__)

JSON_FIELDS = frozenset({"metadata", "assets"})
VECTOR_FIELD = "vector"
EMPTY_JSON_OBJECT = "{}"

# Literal values some upstream serializers emit for "nothing"
_EMPTY_JSON_LITERALS = frozenset({"", "[]", "null", "undefined", "none"})

_FIELD_DEFAULTS: dict[str, Any] = {
    "text": "",
    "document_id": "",
    "chunk_id": "",
    "chunk_index": 0,
    "start_paragraph_index": 0,
    "end_paragraph_index": 0,
    "word_count": 0,
    "char_count": 0,
}

AssetPathResolver = Callable[[Asset, str], str | None]


def default_asset_path(asset: Asset, document_id: str) -> str:
    return f"{document_id}/{asset.file_name}"


class FieldSanitizer:
    """Guarantee storage-safe, non-null record fields."""

    def __init__(
        self,
        embedding_dimension: int = 768,
        asset_path_resolver: AssetPathResolver | None = None,
    ) -> None:
        """
        Initialize sanitizer.

        Args:
            embedding_dimension: Length of the zero-fallback vector
            asset_path_resolver: Maps (asset, document_id) to a stored path

        Raises:
            ValidationError: When embedding_dimension is not positive
        """
        if embedding_dimension <= 0:
            raise ValidationError(
                "embedding_dimension must be positive",
                field="embedding_dimension",
            )
        self._embedding_dimension = embedding_dimension
        self._asset_path_resolver = asset_path_resolver or default_asset_path

    @staticmethod
    def fix_json_field(value: Any) -> str:
        """
        Normalize a JSON field to a JSON object string.

        Empty values and empty-array or null literals become "{}", arrays are
        wrapped as {"data": [...]}, and unparseable text becomes "{}".

        Args:
            value: Raw field value (str, dict, list, or None)

        Returns:
            str: JSON object string
        """
        if value is None:
            return EMPTY_JSON_OBJECT

        if isinstance(value, (dict, list)):
            parsed = value
        else:
            text = str(value).strip()
            if text.lower() in _EMPTY_JSON_LITERALS:
                return EMPTY_JSON_OBJECT
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError:
                logger.debug("Invalid JSON field replaced", extra={"field_value": text[:100]})
                return EMPTY_JSON_OBJECT

        if isinstance(parsed, list):
            if not parsed:
                return EMPTY_JSON_OBJECT
            parsed = {"data": [item for item in parsed if item is not None]}
        if not isinstance(parsed, dict):
            return EMPTY_JSON_OBJECT
        return json.dumps(parsed, ensure_ascii=False)

    def sanitize_vector(
        self,
        vector: Sequence[float] | None,
        dimension: int | None = None,
    ) -> list[float]:
        """
        Return a vector of exactly `dimension` finite floats.

        Missing, wrong-length, or non-finite vectors are replaced by the zero vector.

        Args:
            vector: Candidate embedding
            dimension: Expected length (defaults to the configured embedding dimension)

        Returns:
            list[float]: Storage-safe vector

        Raises:
            ValidationError: When dimension is not positive
        """
        dimension = self._embedding_dimension if dimension is None else dimension
        if dimension <= 0:
            raise ValidationError("Vector dimension must be positive", field="dimension")

        if vector is None or len(vector) != dimension:
            if vector:
                logger.warning(
                    "Vector length mismatch, using zero fallback",
                    extra={"expected": dimension, "actual": len(vector)},
                )
            return [0.0] * dimension

        try:
            values = [float(item) for item in vector]
        except (TypeError, ValueError):
            logger.warning("Vector contains non-numeric values, using zero fallback")
            return [0.0] * dimension

        if not all(math.isfinite(item) for item in values):
            logger.warning("Vector contains non-finite values, using zero fallback")
            return [0.0] * dimension
        return values

    def sanitize_record(self, record: dict[str, Any]) -> dict[str, Any]:
        """
        Fix every field of an arbitrary storage record.

        Args:
            record: Raw record

        Returns:
            dict: New record with no null values
        """
        fixed: dict[str, Any] = {}
        for key, value in record.items():
            if key in JSON_FIELDS:
                fixed[key] = self.fix_json_field(value)
            elif key == VECTOR_FIELD:
                fixed[key] = self.sanitize_vector(value)
            elif value is None:
                fixed[key] = _FIELD_DEFAULTS.get(key, "")
            elif isinstance(value, list):
                fixed[key] = [item for item in value if item is not None]
            else:
                fixed[key] = value
        return fixed

    def sanitize_chunk(
        self,
        chunk: Chunk,
        document_id: str,
        vector: Sequence[float] | None = None,
        include_vector: bool = False,
    ) -> dict[str, Any]:
        """
        Build a storage record for one chunk.

        Args:
            chunk: Chunk to convert
            document_id: Owning document id
            vector: Optional embedding for the chunk
            include_vector: Add a "vector" field (zero fallback when vector is missing)

        Returns:
            dict: Flat record with non-null fields
        """
        metadata = chunk.metadata.model_dump(mode="json", exclude={"extra"})
        metadata["section_title"] = chunk.metadata.section_title or ""
        metadata.update(chunk.metadata.extra)

        record: dict[str, Any] = {
            "document_id": document_id,
            "chunk_id": f"{document_id}_{chunk.chunk_id}",
            "chunk_index": chunk.chunk_id,
            "text": chunk.text,
            "start_paragraph_index": chunk.start_paragraph_index,
            "end_paragraph_index": chunk.end_paragraph_index,
            "word_count": chunk.word_count,
            "char_count": chunk.char_count,
            "metadata": metadata,
            "assets": [self._asset_entry(asset, document_id) for asset in chunk.assets],
        }
        if include_vector:
            record[VECTOR_FIELD] = vector
        return self.sanitize_record(record)

    def sanitize_chunks(self, chunks: Sequence[Chunk], document_id: str) -> list[dict[str, Any]]:
        records = [self.sanitize_chunk(chunk, document_id) for chunk in chunks]
        log_with_context(
            logger,
            logging.INFO,
            "Sanitized chunk records",
            document_id=document_id,
            record_count=len(records),
        )
        return records

    def to_documents(self, chunks: Sequence[Chunk], document_id: str) -> list[Document]:
        """
        Convert chunks into LangChain Documents for vector store upload.

        Args:
            chunks: Chunks to convert
            document_id: Owning document id

        Returns:
            list[Document]: page_content is the chunk text; metadata is the sanitized record
        """
        documents = []
        for record in self.sanitize_chunks(chunks, document_id):
            text = record.pop("text")
            documents.append(Document(page_content=text, metadata=record))
        return documents

    def _asset_entry(self, asset: Asset, document_id: str) -> dict[str, Any]:
        position = asset.position
        paragraph_index = position.paragraph_index if position is not None else None
        run_index = position.run_index if position is not None else None
        return {
            "index": asset.index,
            "file_name": asset.file_name or "",
            "byte_format": asset.byte_format or "",
            "content_hash": asset.content_hash,
            "width": asset.width or 0,
            "height": asset.height or 0,
            "size": asset.size,
            "path": self._asset_path_resolver(asset, document_id) or "",
            "paragraph_index": paragraph_index if paragraph_index is not None else -1,
            "run_index": run_index if run_index is not None else -1,
            "char_offset": position.char_offset_in_paragraph if position is not None else 0,
            "resolution_method": position.resolution_method.value if position is not None else "unassigned",
        }
