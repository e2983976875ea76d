"""
Shared test fixtures and configuration for entire test suite.

Provides: docx builders (python-docx), PNG generation (Pillow), paragraph/asset
factories, and raw drawing markup for anchoring tests
Dependencies: pytest, python-docx, Pillow
System role: Test infrastructure and fixture management
"""

import hashlib
import io

import docx
import pytest
from PIL import Image

from docstruct.core.document_processing.configs import get_pipeline_settings
from docstruct.core.document_processing.models import (
    Asset,
    Paragraph,
    ParagraphType,
    RunInfo,
)

NAMESPACE_DECLARATIONS = (
    'xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main" '
    'xmlns:wp="http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing" '
    'xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" '
    'xmlns:pic="http://schemas.openxmlformats.org/drawingml/2006/picture" '
    'xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships" '
    'xmlns:v="urn:schemas-microsoft-com:vml"'
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Ensure each test sees freshly loaded settings."""
    get_pipeline_settings.cache_clear()
    yield
    get_pipeline_settings.cache_clear()


@pytest.fixture
def make_png():
    """Factory producing small, distinct PNG images by colour."""

    def _make(color: tuple[int, int, int] = (255, 0, 0), size: tuple[int, int] = (8, 8)) -> bytes:
        buffer = io.BytesIO()
        Image.new("RGB", size, color).save(buffer, format="PNG")
        return buffer.getvalue()

    return _make


@pytest.fixture
def docx_to_bytes():
    """Serialize a python-docx Document to bytes."""

    def _to_bytes(document) -> bytes:
        buffer = io.BytesIO()
        document.save(buffer)
        return buffer.getvalue()

    return _to_bytes


@pytest.fixture
def red_png(make_png) -> bytes:
    return make_png((255, 0, 0))


@pytest.fixture
def blue_png(make_png) -> bytes:
    return make_png((0, 0, 255))


@pytest.fixture
def sample_docx_bytes(docx_to_bytes, red_png, blue_png) -> bytes:
    """
    Document with headings, a colon heading, a list item, a table, and two pictures.

    Block layout:
        0 Heading 1 "Introduction"
        1 normal text
        2 picture paragraph (red)
        3 "Details:"
        4 "1. First item"
        5 table "A | B\\nC | D"
        6 Heading 2 "Scope"
        7 "Chart: " + picture run (blue) + " follows"
    """
    document = docx.Document()
    document.add_heading("Introduction", level=1)
    document.add_paragraph("This document describes the ingestion pipeline.")
    document.add_picture(io.BytesIO(red_png))
    document.add_paragraph("Details:")
    document.add_paragraph("1. First item")

    table = document.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "A"
    table.cell(0, 1).text = "B"
    table.cell(1, 0).text = "C"
    table.cell(1, 1).text = "D"

    document.add_heading("Scope", level=2)
    paragraph = document.add_paragraph("Chart: ")
    paragraph.add_run().add_picture(io.BytesIO(blue_png))
    paragraph.add_run(" follows")

    return docx_to_bytes(document)


@pytest.fixture
def text_only_docx_bytes(docx_to_bytes) -> bytes:
    document = docx.Document()
    document.add_paragraph("Alpha paragraph.")
    document.add_paragraph("Beta paragraph.")
    return docx_to_bytes(document)


@pytest.fixture
def make_paragraph():
    """Factory for Paragraph models with consistent offsets."""

    def _make(
        index: int,
        text: str = "",
        paragraph_type: ParagraphType = ParagraphType.NORMAL,
        heading_level: int = 0,
        markup: str = "",
        runs: list[RunInfo] | None = None,
        start_offset: int = 0,
    ) -> Paragraph:
        return Paragraph(
            id=index,
            text=text,
            start_offset=start_offset,
            end_offset=start_offset + len(text),
            type=paragraph_type,
            heading_level=heading_level,
            markup=markup,
            runs=runs or [],
        )

    return _make


@pytest.fixture
def paragraphs_from_texts(make_paragraph):
    """Build a normal paragraph sequence from plain texts."""

    def _build(texts: list[str]) -> list[Paragraph]:
        paragraphs = []
        offset = 0
        for index, text in enumerate(texts):
            paragraphs.append(make_paragraph(index, text, start_offset=offset))
            offset += len(text) + 1
        return paragraphs

    return _build


@pytest.fixture
def make_asset():
    """Factory for unpositioned Asset models."""

    def _make(
        index: int,
        relationship_ids: list[str] | None = None,
        part_name: str | None = None,
        raw_bytes: bytes | None = None,
    ) -> Asset:
        payload = raw_bytes if raw_bytes is not None else f"asset-{index}".encode()
        return Asset(
            index=index,
            file_name=f"image{index + 1}.png",
            byte_format="png",
            raw_bytes=payload,
            content_hash=hashlib.sha256(payload).hexdigest(),
            part_name=part_name,
            relationship_ids=relationship_ids or [],
        )

    return _make


@pytest.fixture
def drawing_markup():
    """
    Factory for paragraph markup holding one picture run per relationship id.

    legacy=True emits VML w:pict/v:imagedata instead of DrawingML.
    """

    def _make(*rel_ids: str, text: str = "", legacy: bool = False) -> str:
        runs = []
        if text:
            runs.append(f"<w:r><w:t>{text}</w:t></w:r>")
        for rel_id in rel_ids:
            if legacy:
                runs.append(
                    f'<w:r><w:pict><v:shape><v:imagedata r:id="{rel_id}"/></v:shape></w:pict></w:r>'
                )
            else:
                runs.append(
                    "<w:r><w:drawing><wp:inline><a:graphic><a:graphicData><pic:pic>"
                    f'<pic:blipFill><a:blip r:embed="{rel_id}"/></pic:blipFill>'
                    "</pic:pic></a:graphicData></a:graphic></wp:inline></w:drawing></w:r>"
                )
        return f"<w:p {NAMESPACE_DECLARATIONS}>{''.join(runs)}</w:p>"

    return _make
