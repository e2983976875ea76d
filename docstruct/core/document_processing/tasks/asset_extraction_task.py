"""
Embedded asset extraction task.

Enumerates images stored in a docx package through several independent
strategies and merges them into one discovery-ordered asset list.

Dependencies: python-docx
System role: Runs alongside ParsingTask; feeds AnchoringTask
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from docx.document import Document as DocxDocument
from docx.image.image import Image as DocxImage
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.opc.part import Part

from docstruct.observability.log_utils import log_exception_with_context, log_with_context

from ..models import Asset
from .container import ContainerFormat, clark, open_container, sha256_hex

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "png"

_BLIP = clark("a:blip")
_R_EMBED = clark("r:embed")
_DIGITS = re.compile(r"(\d+)")

_SUBTYPE_FORMATS = {
    "jpeg": "jpg",
    "pjpeg": "jpg",
    "x-emf": "emf",
    "x-wmf": "wmf",
    "svg+xml": "svg",
}


@dataclass
class AssetCandidate:
    """Raw image found by one enumeration strategy, before merging."""

    blob: bytes
    content_type: str | None = None
    part_name: str | None = None
    relationship_ids: list[str] = field(default_factory=list)


def _rel_sort_key(rel_id: str) -> tuple[int, str]:
    match = _DIGITS.search(rel_id)
    return (int(match.group(1)) if match else 0, rel_id)


def _candidate_from_part(part: Part, relationship_ids: list[str] | None = None) -> AssetCandidate:
    return AssetCandidate(
        blob=part.blob,
        content_type=part.content_type,
        part_name=str(part.partname),
        relationship_ids=list(relationship_ids or []),
    )


def _read_header(blob: bytes, part_name: str | None = None) -> DocxImage | None:
    try:
        return DocxImage.from_blob(blob)
    except Exception as e:
        logger.debug("Image header not recognized", extra={"part_name": part_name, "error_msg": str(e)})
        return None


def image_dimensions(blob: bytes, part_name: str | None = None) -> tuple[int | None, int | None]:
    """Pixel (width, height) from the image header, (None, None) when unreadable."""
    header = _read_header(blob, part_name)
    if header is None:
        return None, None
    return header.px_width, header.px_height


def infer_format(blob: bytes, content_type: str | None = None, part_name: str | None = None) -> str:
    """
    Infer an image format extension.

    Content sniffing wins; the part name extension and the MIME subtype are
    fallbacks, then png.

    Args:
        blob: Image bytes
        content_type: Declared MIME type
        part_name: Package part name

    Returns:
        str: Lower-case extension without the dot
    """
    header = _read_header(blob, part_name)
    if header is not None:
        return header.ext.lower()

    if part_name:
        suffix = PurePosixPath(part_name).suffix.lstrip(".").lower()
        if suffix:
            return "jpg" if suffix == "jpeg" else suffix

    if content_type and "/" in content_type:
        subtype = content_type.split("/", 1)[1].lower()
        if subtype:
            return _SUBTYPE_FORMATS.get(subtype, subtype)

    return DEFAULT_FORMAT


class AssetEnumerator(ABC):
    """One way of discovering images inside a package."""

    name: str = "enumerator"

    @abstractmethod
    def enumerate(self, document: DocxDocument) -> list[AssetCandidate]:
        """Return candidates in this strategy's discovery order."""


class RelationshipEnumerator(AssetEnumerator):
    """Image relationships of the main document part, then of header/footer parts."""

    name = "relationships"

    def enumerate(self, document: DocxDocument) -> list[AssetCandidate]:
        candidates = self._from_part(document.part, keep_ids=True)

        # Relationship ids are scoped per part, so only main-document ids are kept
        for section in document.sections:
            for story in (section.header, section.footer):
                if not story.is_linked_to_previous:
                    candidates.extend(self._from_part(story.part, keep_ids=False))
        return candidates

    @staticmethod
    def _from_part(part: Part, keep_ids: bool) -> list[AssetCandidate]:
        candidates = []
        for rel_id in sorted(part.rels.keys(), key=_rel_sort_key):
            rel = part.rels[rel_id]
            if rel.reltype != RT.IMAGE or rel.is_external:
                continue
            candidates.append(_candidate_from_part(rel.target_part, [rel_id] if keep_ids else None))
        return candidates


class InlineShapeEnumerator(AssetEnumerator):
    """Blip references of inline pictures in the document body."""

    name = "inline_shapes"

    def enumerate(self, document: DocxDocument) -> list[AssetCandidate]:
        related_parts = document.part.related_parts
        candidates = []
        for shape in document.inline_shapes:
            for blip in shape._inline.iter(_BLIP):
                rel_id = blip.get(_R_EMBED)
                part = related_parts.get(rel_id) if rel_id else None
                if part is not None:
                    candidates.append(_candidate_from_part(part, [rel_id]))
        return candidates


class PackagePartEnumerator(AssetEnumerator):
    """Every image/* part under the document story folder, referenced or not."""

    name = "package_parts"

    # Excludes package-level parts such as docProps/thumbnail.jpeg
    story_prefix = "/word/"

    def enumerate(self, document: DocxDocument) -> list[AssetCandidate]:
        candidates = []
        for part in document.part.package.iter_parts():
            content_type = part.content_type or ""
            if content_type.startswith("image/") and str(part.partname).startswith(self.story_prefix):
                candidates.append(_candidate_from_part(part))
        candidates.sort(key=lambda c: _rel_sort_key(c.part_name or ""))
        return candidates


def default_enumerators() -> list[AssetEnumerator]:
    return [RelationshipEnumerator(), InlineShapeEnumerator(), PackagePartEnumerator()]


class AssetExtractionTask:
    """Extract and de-duplicate embedded images from docx bytes."""

    def __init__(self, enumerators: list[AssetEnumerator] | None = None) -> None:
        """
        Initialize extraction task.

        Args:
            enumerators: Enumeration strategies in merge priority order (defaults to all three)
        """
        self._enumerators = enumerators if enumerators is not None else default_enumerators()

    def extract(
        self,
        content: bytes,
        container_format: str | ContainerFormat = ContainerFormat.DOCX,
    ) -> list[Asset]:
        """
        Extract assets from document bytes.

        Args:
            content: Raw container bytes
            container_format: Declared container format

        Returns:
            list[Asset]: Unpositioned assets in discovery order

        Raises:
            UnsupportedFormatError: When the bytes are not a supported container
        """
        document = open_container(content, container_format)
        return self.extract_document(document)

    def extract_document(self, document: DocxDocument) -> list[Asset]:
        """
        Run every enumerator and merge results by content hash.

        A failing enumerator is logged and skipped.

        Args:
            document: Opened python-docx document

        Returns:
            list[Asset]: Unpositioned assets, index assigned in first-seen order
        """
        merged: dict[str, AssetCandidate] = {}

        for enumerator in self._enumerators:
            try:
                candidates = enumerator.enumerate(document)
            except Exception as e:
                log_exception_with_context(
                    logger,
                    "Asset enumeration strategy failed",
                    e,
                    level=logging.WARNING,
                    strategy=enumerator.name,
                )
                continue

            for candidate in candidates:
                if not candidate.blob:
                    continue
                digest = sha256_hex(candidate.blob)
                existing = merged.get(digest)
                if existing is None:
                    merged[digest] = candidate
                    continue
                for rel_id in candidate.relationship_ids:
                    if rel_id not in existing.relationship_ids:
                        existing.relationship_ids.append(rel_id)
                if existing.part_name is None:
                    existing.part_name = candidate.part_name
                if existing.content_type is None:
                    existing.content_type = candidate.content_type

        assets = [
            self._build_asset(index, digest, candidate)
            for index, (digest, candidate) in enumerate(merged.items())
        ]

        log_with_context(logger, logging.INFO, "Extracted assets", asset_count=len(assets))
        return assets

    @staticmethod
    def _build_asset(index: int, digest: str, candidate: AssetCandidate) -> Asset:
        byte_format = infer_format(candidate.blob, candidate.content_type, candidate.part_name)
        width, height = image_dimensions(candidate.blob, candidate.part_name)
        file_name = PurePosixPath(candidate.part_name).name if candidate.part_name else ""
        if not file_name:
            file_name = f"image_{index + 1}.{byte_format}"

        return Asset(
            index=index,
            file_name=file_name,
            byte_format=byte_format,
            raw_bytes=candidate.blob,
            content_hash=digest,
            content_type=candidate.content_type,
            part_name=candidate.part_name,
            relationship_ids=candidate.relationship_ids,
            width=width,
            height=height,
        )
