"""
Paragraph classification rules.

Assigns a structural type and heading depth to a paragraph from its explicit
style and its text shape.

Dependencies: None (regex rules over models)
System role: Used by ParsingTask for every body paragraph
"""

import re

from ..models import ParagraphStyle, ParagraphType

HEADING_STYLE_PATTERN = re.compile(r"^heading\s*([0-9]+)$", re.IGNORECASE)
NUMERIC_STYLE_PATTERN = re.compile(r"^[0-9]+$")
TITLE_STYLE_NAMES = frozenset({"title"})

HEADING_TERMINATORS = (":", "：")

# "1. Item", "1、Item", "一、Item", "一. Item"
LIST_ITEM_PATTERN = re.compile(r"^(?:[0-9]+|[一二三四五六七八九十]+)(?:、|\.\s)")

CHAPTER_PATTERN = re.compile(r"^第[一二三四五六七八九十百零0-9]+章")
SECTION_PATTERN = re.compile(r"^[0-9]+\.[0-9]+\s")
SUBSECTION_PATTERN = re.compile(r"^[0-9]+\.[0-9]+\.[0-9]+\s")

# outlineLvl 9 marks body text
MAX_OUTLINE_LEVEL = 8


class ParagraphClassifier:
    """Classify paragraphs as heading, list item, or normal text."""

    def __init__(self, heading_max_chars: int = 150) -> None:
        """
        Initialize classifier.

        Args:
            heading_max_chars: Colon-terminated text shorter than this counts as a heading
        """
        self._heading_max_chars = heading_max_chars

    def classify(self, text: str, style: ParagraphStyle) -> tuple[ParagraphType, int]:
        """
        Classify a paragraph.

        Rules apply in priority order: explicit heading style, short
        colon-terminated text, list enumerator prefix, otherwise normal.

        Args:
            text: Trimmed paragraph text
            style: Paragraph style snapshot

        Returns:
            tuple[ParagraphType, int]: Type and heading depth (0 unless heading)
        """
        explicit_level = self.explicit_heading_level(style)
        if explicit_level is not None:
            return ParagraphType.HEADING, explicit_level

        if self.is_colon_heading(text):
            return ParagraphType.HEADING, self.pattern_heading_level(text)

        if LIST_ITEM_PATTERN.match(text):
            return ParagraphType.LIST_ITEM, 0

        return ParagraphType.NORMAL, 0

    def explicit_heading_level(self, style: ParagraphStyle) -> int | None:
        """Heading depth declared by the container, or None when no heading style applies."""
        for candidate in (style.style_name, style.style_id):
            if not candidate:
                continue
            match = HEADING_STYLE_PATTERN.match(candidate.strip())
            if match:
                return max(int(match.group(1)), 1)
            if candidate.strip().lower() in TITLE_STYLE_NAMES:
                return 1

        if style.style_id and NUMERIC_STYLE_PATTERN.match(style.style_id.strip()):
            return max(int(style.style_id.strip()), 1)

        if style.outline_level is not None and 0 <= style.outline_level <= MAX_OUTLINE_LEVEL:
            return style.outline_level + 1

        return None

    def is_colon_heading(self, text: str) -> bool:
        return 0 < len(text) < self._heading_max_chars and text.endswith(HEADING_TERMINATORS)

    @staticmethod
    def pattern_heading_level(text: str) -> int:
        """Depth implied by chapter/section numbering, 0 when none matches."""
        if CHAPTER_PATTERN.match(text):
            return 1
        if SUBSECTION_PATTERN.match(text):
            return 3
        if SECTION_PATTERN.match(text):
            return 2
        return 0
