"""Tests for embedded asset extraction.

Tests:
- Enumeration over real documents (relationships, inline shapes, package parts)
- Merge and de-duplication by content hash
- Failure isolation per enumeration strategy
- Format inference and fallback names
"""

import hashlib
import io
from unittest.mock import MagicMock, patch

import docx
import pytest
from PIL import Image

from docstruct.core.document_processing.tasks.asset_extraction_task import (
    AssetCandidate,
    AssetEnumerator,
    AssetExtractionTask,
    InlineShapeEnumerator,
    PackagePartEnumerator,
    RelationshipEnumerator,
    image_dimensions,
    infer_format,
)
from docstruct.core.exceptions import UnsupportedFormatError


class StaticEnumerator(AssetEnumerator):
    """Enumerator returning a fixed candidate list."""

    name = "static"

    def __init__(self, candidates: list[AssetCandidate]) -> None:
        self._candidates = candidates

    def enumerate(self, document) -> list[AssetCandidate]:
        return [
            AssetCandidate(c.blob, c.content_type, c.part_name, list(c.relationship_ids))
            for c in self._candidates
        ]


class FailingEnumerator(AssetEnumerator):
    """Enumerator that always raises."""

    name = "failing"

    def enumerate(self, document) -> list[AssetCandidate]:
        raise RuntimeError("corrupt package listing")


# ============================================================================
# Real Document Tests
# ============================================================================


class TestAssetExtractionTask:
    """Test extraction over documents built with python-docx."""

    def test_extracts_each_picture_once(self, sample_docx_bytes, red_png, blue_png) -> None:
        """Should find both pictures once despite three overlapping strategies."""
        assets = AssetExtractionTask().extract(sample_docx_bytes)

        assert [asset.index for asset in assets] == [0, 1]
        assert [asset.raw_bytes for asset in assets] == [red_png, blue_png]
        assert assets[0].content_hash == hashlib.sha256(red_png).hexdigest()

    def test_asset_metadata(self, sample_docx_bytes) -> None:
        """Should carry file name, format, content type, part name, and relationship ids."""
        asset = AssetExtractionTask().extract(sample_docx_bytes)[0]

        assert asset.byte_format == "png"
        assert asset.content_type == "image/png"
        assert asset.part_name.startswith("/word/media/")
        assert asset.file_name == asset.part_name.rsplit("/", 1)[-1]
        assert len(asset.relationship_ids) == 1
        assert asset.relationship_ids[0].startswith("rId")
        assert asset.position is None

    def test_asset_dimensions_and_size(self, sample_docx_bytes, red_png) -> None:
        """Should record pixel dimensions and payload size."""
        asset = AssetExtractionTask().extract(sample_docx_bytes)[0]

        assert (asset.width, asset.height) == (8, 8)
        assert asset.size == len(red_png)

    def test_reused_picture_is_one_asset(self, docx_to_bytes, red_png) -> None:
        """Should de-duplicate a picture inserted twice."""
        document = docx.Document()
        document.add_picture(io.BytesIO(red_png))
        document.add_paragraph("Between")
        document.add_picture(io.BytesIO(red_png))

        assets = AssetExtractionTask().extract(docx_to_bytes(document))

        assert len(assets) == 1

    def test_text_only_document_has_no_assets(self, text_only_docx_bytes) -> None:
        """Should return an empty list when the package holds no images."""
        assert AssetExtractionTask().extract(text_only_docx_bytes) == []

    def test_header_picture_has_no_main_document_ids(self, docx_to_bytes, red_png, blue_png) -> None:
        """Should extract header pictures without main-document relationship ids."""
        document = docx.Document()
        document.add_picture(io.BytesIO(red_png))
        document.sections[0].header.paragraphs[0].add_run().add_picture(io.BytesIO(blue_png))

        assets = AssetExtractionTask().extract(docx_to_bytes(document))
        by_bytes = {asset.raw_bytes: asset for asset in assets}

        assert len(assets) == 2
        assert by_bytes[red_png].relationship_ids
        assert by_bytes[blue_png].relationship_ids == []

    def test_failing_relationship_strategy_is_skipped(self, sample_docx_bytes) -> None:
        """Should still find every picture when one strategy raises."""
        with patch.object(RelationshipEnumerator, "enumerate", side_effect=RuntimeError("boom")):
            assets = AssetExtractionTask().extract(sample_docx_bytes)

        assert len(assets) == 2
        assert all(asset.relationship_ids for asset in assets)

    @pytest.mark.parametrize("enumerator_class", [InlineShapeEnumerator, PackagePartEnumerator])
    def test_single_strategy_finds_pictures(self, sample_docx_bytes, enumerator_class) -> None:
        """Should let each strategy discover the pictures on its own."""
        assets = AssetExtractionTask(enumerators=[enumerator_class()]).extract(sample_docx_bytes)

        assert len(assets) == 2

    def test_rejects_unsupported_content(self) -> None:
        """Should raise UnsupportedFormatError for non-container bytes."""
        with pytest.raises(UnsupportedFormatError):
            AssetExtractionTask().extract(b"\x00\x01\x02")


# ============================================================================
# Merge Tests
# ============================================================================


class TestEnumerationMerge:
    """Test merging candidate lists from several strategies."""

    def test_merges_by_content_hash(self, make_png) -> None:
        """Should merge identical bytes and union their relationship ids."""
        png = make_png((10, 20, 30))
        first = StaticEnumerator([AssetCandidate(png, "image/png", "/word/media/image1.png", ["rId4"])])
        second = StaticEnumerator([AssetCandidate(png, None, None, ["rId9"])])

        assets = AssetExtractionTask(enumerators=[first, second]).extract_document(MagicMock())

        assert len(assets) == 1
        assert assets[0].relationship_ids == ["rId4", "rId9"]
        assert assets[0].part_name == "/word/media/image1.png"

    def test_discovery_order_is_first_seen(self, make_png) -> None:
        """Should index assets in the order they were first seen."""
        red, green = make_png((255, 0, 0)), make_png((0, 255, 0))
        first = StaticEnumerator([AssetCandidate(green)])
        second = StaticEnumerator([AssetCandidate(red), AssetCandidate(green)])

        assets = AssetExtractionTask(enumerators=[first, second]).extract_document(MagicMock())

        assert [asset.raw_bytes for asset in assets] == [green, red]
        assert [asset.index for asset in assets] == [0, 1]

    def test_missing_name_is_synthesized(self, make_png) -> None:
        """Should name unnamed assets from discovery index and format."""
        enumerator = StaticEnumerator([AssetCandidate(b"first"), AssetCandidate(make_png())])

        assets = AssetExtractionTask(enumerators=[enumerator]).extract_document(MagicMock())

        assert assets[0].file_name == "image_1.png"
        assert assets[1].file_name == "image_2.png"

    def test_failing_strategy_does_not_block_others(self, make_png) -> None:
        """Should log and skip a raising strategy."""
        enumerator = StaticEnumerator([AssetCandidate(make_png())])

        assets = AssetExtractionTask(
            enumerators=[FailingEnumerator(), enumerator]
        ).extract_document(MagicMock())

        assert len(assets) == 1

    def test_empty_blobs_are_ignored(self) -> None:
        """Should skip candidates without bytes."""
        enumerator = StaticEnumerator([AssetCandidate(b"")])

        assert AssetExtractionTask(enumerators=[enumerator]).extract_document(MagicMock()) == []


# ============================================================================
# Format Inference Tests
# ============================================================================


class TestInferFormat:
    """Test image format inference."""

    def test_sniffs_png(self, make_png) -> None:
        """Should detect PNG from content."""
        assert infer_format(make_png(), "image/jpeg", "/word/media/image1.jpeg") == "png"

    def test_sniffs_jpeg(self) -> None:
        """Should detect JPEG from content."""
        buffer = io.BytesIO()
        Image.new("RGB", (4, 4), (1, 2, 3)).save(buffer, format="JPEG")

        assert infer_format(buffer.getvalue()) == "jpg"

    def test_falls_back_to_part_extension(self) -> None:
        """Should use the part name suffix when content is unrecognized."""
        assert infer_format(b"not an image", None, "/word/media/image3.jpeg") == "jpg"

    def test_falls_back_to_content_type(self) -> None:
        """Should use the MIME subtype when no part name exists."""
        assert infer_format(b"not an image", "image/x-emf", None) == "emf"

    def test_defaults_to_png(self) -> None:
        """Should default to png when nothing identifies the format."""
        assert infer_format(b"not an image") == "png"


class TestImageDimensions:
    """Test pixel size reading from image headers."""

    def test_reads_png_size(self, make_png) -> None:
        """Should read width and height from a PNG header."""
        assert image_dimensions(make_png(size=(12, 7))) == (12, 7)

    def test_unreadable_header(self) -> None:
        """Should return (None, None) for unrecognized bytes."""
        assert image_dimensions(b"not an image") == (None, None)

    def test_unreadable_asset_keeps_no_dimensions(self) -> None:
        """Should leave width and height unset when the header is unknown."""
        task = AssetExtractionTask(
            enumerators=[StaticEnumerator([AssetCandidate(blob=b"\x00\x01emf", part_name="/word/media/image1.emf")])]
        )

        asset = task.extract_document(MagicMock())[0]

        assert asset.width is None
        assert asset.height is None
        assert asset.size == 5
