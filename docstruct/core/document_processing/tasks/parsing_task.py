"""
Structural paragraph extraction task using python-docx.

Converts a WordprocessingML document into an ordered, classified paragraph
sequence with offsets into the flattened full text.

Dependencies: python-docx, lxml
System role: First stage of document ingestion pipeline
"""

import logging
from collections.abc import Iterator

from docx.document import Document as DocxDocument
from docx.oxml.table import CT_Tbl
from docx.oxml.text.paragraph import CT_P
from docx.shared import Length
from docx.table import Table as DocxTable
from docx.text.paragraph import Paragraph as DocxParagraph
from lxml import etree

from docstruct.observability.log_utils import log_exception_with_context, log_with_context

from ..models import (
    Paragraph,
    ParagraphStyle,
    ParagraphType,
    RunInfo,
    StructuredDocument,
)
from .classification import ParagraphClassifier
from .container import ContainerFormat, clark, open_container, sha256_hex

logger = logging.getLogger(__name__)

_BLIP = clark("a:blip")
_IMAGEDATA = clark("v:imagedata")
_R_EMBED = clark("r:embed")
_R_LINK = clark("r:link")
_R_ID = clark("r:id")
_OUTLINE_LVL = f"{clark('w:pPr')}/{clark('w:outlineLvl')}"
_W_VAL = clark("w:val")


def _points(length: Length | None) -> float | None:
    """Length in points, None when unset or not positive."""
    if length is None:
        return None
    points = float(length.pt)
    return points if points > 0 else None


class ParsingTask:
    """Parse docx bytes into a StructuredDocument."""

    def __init__(
        self,
        include_tables: bool = True,
        include_headers_footers: bool = False,
        heading_max_chars: int = 150,
    ) -> None:
        """
        Initialize parsing task.

        Args:
            include_tables: Emit one table block per body table
            include_headers_footers: Append header/footer paragraphs after the body
            heading_max_chars: Threshold for colon-terminated heading detection
        """
        self._include_tables = include_tables
        self._include_headers_footers = include_headers_footers
        self._classifier = ParagraphClassifier(heading_max_chars=heading_max_chars)

    def parse(
        self,
        content: bytes,
        container_format: str | ContainerFormat = ContainerFormat.DOCX,
    ) -> StructuredDocument:
        """
        Parse document bytes into an ordered paragraph sequence.

        Args:
            content: Raw container bytes
            container_format: Declared container format

        Returns:
            StructuredDocument: Paragraphs plus flattened full text

        Raises:
            UnsupportedFormatError: When the bytes are not a supported container
            ParsingError: When the container cannot be opened
        """
        document = open_container(content, container_format)
        return self.parse_document(document)

    def parse_document(self, document: DocxDocument) -> StructuredDocument:
        """
        Walk an opened document and build the paragraph sequence.

        A block that fails to read is replaced by an empty normal paragraph
        so ids and offsets of the following blocks are unaffected.

        Args:
            document: Opened python-docx document

        Returns:
            StructuredDocument: Paragraphs plus flattened full text
        """
        paragraphs: list[Paragraph] = []
        text_parts: list[str] = []
        offset = 0

        for index, (block_type, block) in enumerate(self._iter_blocks(document)):
            try:
                if isinstance(block, DocxTable):
                    paragraph = self._read_table(block, index, offset)
                else:
                    paragraph = self._read_paragraph(block, index, offset, block_type)
            except Exception as e:
                log_exception_with_context(
                    logger,
                    "Paragraph extraction failed, substituting empty paragraph",
                    e,
                    level=logging.WARNING,
                    paragraph_index=index,
                )
                paragraph = Paragraph(id=index, text="", start_offset=offset, end_offset=offset)

            paragraphs.append(paragraph)
            text_parts.append(paragraph.text + "\n")
            offset = paragraph.end_offset + 1

        log_with_context(
            logger,
            logging.INFO,
            "Extracted paragraphs",
            paragraph_count=len(paragraphs),
            heading_count=sum(1 for p in paragraphs if p.is_heading),
        )
        return StructuredDocument(
            paragraphs=paragraphs,
            full_text="".join(text_parts),
            properties=self._read_properties(document),
        )

    @staticmethod
    def _read_properties(document: DocxDocument) -> dict[str, str]:
        """Non-empty core properties; unreadable properties yield an empty dict."""
        try:
            core = document.core_properties
            values = {
                "title": core.title,
                "subject": core.subject,
                "creator": core.author,
                "description": core.comments,
            }
        except Exception as e:
            log_exception_with_context(logger, "Core properties unreadable", e, level=logging.WARNING)
            return {}
        return {key: value.strip() for key, value in values.items() if value and value.strip()}

    def _iter_blocks(
        self, document: DocxDocument
    ) -> Iterator[tuple[ParagraphType | None, DocxParagraph | DocxTable]]:
        """Yield body blocks in document order, then header/footer paragraphs."""
        body = document._body
        for child in document.element.body.iterchildren():
            if isinstance(child, CT_P):
                yield None, DocxParagraph(child, body)
            elif isinstance(child, CT_Tbl) and self._include_tables:
                yield ParagraphType.TABLE, DocxTable(child, body)

        if not self._include_headers_footers:
            return

        for section in document.sections:
            for block_type, story in (
                (ParagraphType.HEADER, section.header),
                (ParagraphType.FOOTER, section.footer),
            ):
                if story.is_linked_to_previous:
                    continue
                for docx_paragraph in story.paragraphs:
                    yield block_type, docx_paragraph

    def _read_paragraph(
        self,
        docx_paragraph: DocxParagraph,
        index: int,
        offset: int,
        block_type: ParagraphType | None,
    ) -> Paragraph:
        text = (docx_paragraph.text or "").strip()
        style = self._read_style(docx_paragraph)

        if block_type is None:
            paragraph_type, heading_level = self._classifier.classify(text, style)
        else:
            paragraph_type, heading_level = block_type, 0

        return Paragraph(
            id=index,
            text=text,
            start_offset=offset,
            end_offset=offset + len(text),
            type=paragraph_type,
            heading_level=heading_level,
            style=style,
            runs=self._read_runs(docx_paragraph),
            markup=etree.tostring(docx_paragraph._p, encoding="unicode"),
        )

    def _read_table(self, table: DocxTable, index: int, offset: int) -> Paragraph:
        rows = []
        for row in table.rows:
            rows.append(" | ".join(cell.text.strip() for cell in row.cells))
        text = "\n".join(rows).strip()

        style_name = None
        try:
            style_name = table.style.name if table.style is not None else None
        except Exception as e:
            logger.debug("Table style lookup failed", extra={"paragraph_index": index, "error_msg": str(e)})

        return Paragraph(
            id=index,
            text=text,
            start_offset=offset,
            end_offset=offset + len(text),
            type=ParagraphType.TABLE,
            style=ParagraphStyle(style_name=style_name),
            markup=etree.tostring(table._tbl, encoding="unicode"),
        )

    def _read_style(self, docx_paragraph: DocxParagraph) -> ParagraphStyle:
        p_element = docx_paragraph._p
        style_id = p_element.style

        style_name = None
        try:
            if docx_paragraph.style is not None:
                style_name = docx_paragraph.style.name
        except Exception as e:
            logger.debug("Paragraph style lookup failed", extra={"style_id": style_id, "error_msg": str(e)})

        outline_level = None
        outline = p_element.find(_OUTLINE_LVL)
        if outline is not None:
            try:
                outline_level = int(outline.get(_W_VAL))
            except (TypeError, ValueError):
                outline_level = None

        paragraph_format = docx_paragraph.paragraph_format
        alignment = docx_paragraph.alignment
        line_spacing = paragraph_format.line_spacing
        if isinstance(line_spacing, Length):
            line_spacing = _points(line_spacing)
        elif line_spacing is not None and line_spacing <= 0:
            line_spacing = None

        return ParagraphStyle(
            style_name=style_name,
            style_id=style_id,
            outline_level=outline_level,
            alignment=alignment.name.lower() if alignment is not None else None,
            first_line_indent=_points(paragraph_format.first_line_indent),
            left_indent=_points(paragraph_format.left_indent),
            spacing_before=_points(paragraph_format.space_before),
            spacing_after=_points(paragraph_format.space_after),
            line_spacing=float(line_spacing) if line_spacing is not None else None,
        )

    def _read_runs(self, docx_paragraph: DocxParagraph) -> list[RunInfo]:
        related_parts = docx_paragraph.part.related_parts
        runs = []
        for run_index, run in enumerate(docx_paragraph.runs):
            embedded_ids = self._embedded_ids(run._r)
            digests = []
            for rel_id in embedded_ids:
                part = related_parts.get(rel_id)
                if part is not None:
                    digests.append(sha256_hex(part.blob))

            font = run.font
            runs.append(
                RunInfo(
                    index=run_index,
                    text=run.text or "",
                    font_family=font.name,
                    font_size=float(font.size.pt) if font.size is not None else None,
                    bold=bool(run.bold),
                    italic=bool(run.italic),
                    underlined=bool(run.underline),
                    embedded_ids=embedded_ids,
                    embedded_digests=digests,
                )
            )
        return runs

    @staticmethod
    def _embedded_ids(run_element: etree._Element) -> list[str]:
        """Relationship ids referenced by pictures inside a run, in order, unique."""
        ids: list[str] = []
        for blip in run_element.iter(_BLIP):
            for attr in (_R_EMBED, _R_LINK):
                value = blip.get(attr)
                if value and value not in ids:
                    ids.append(value)
        for imagedata in run_element.iter(_IMAGEDATA):
            value = imagedata.get(_R_ID)
            if value and value not in ids:
                ids.append(value)
        return ids
