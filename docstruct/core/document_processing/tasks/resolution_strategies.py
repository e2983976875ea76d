"""
Asset position resolution strategies.

Each strategy tries to locate the paragraph an asset belongs to. Strategies
scan paragraphs top-down so the earliest match wins, and a failure on one
(asset, paragraph) pair counts as no match for that pair.

Dependencies: lxml
System role: Pluggable strategy chain consumed by AnchoringTask
"""

import logging
import re
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from lxml import etree

from ..models import Asset, AssetPosition, Paragraph, ResolutionMethod
from .container import clark

logger = logging.getLogger(__name__)

_W_R = clark("w:r")
_W_DRAWING = clark("w:drawing")
_W_PICT = clark("w:pict")
_BLIP = clark("a:blip")
_IMAGEDATA = clark("v:imagedata")
_R_EMBED = clark("r:embed")
_R_LINK = clark("r:link")
_R_ID = clark("r:id")
_DIGITS = re.compile(r"(\d+)")


@dataclass(frozen=True)
class Match:
    """Successful (asset, paragraph) match; run_index is None when the run is unknown."""

    run_index: int | None = None


@dataclass(frozen=True)
class DrawingReference:
    """Picture reference found by descending drawing markup."""

    rel_id: str
    run_index: int | None


@dataclass(frozen=True)
class Placeholder:
    """Drawing or picture element and the relationship ids it points at."""

    run_index: int | None
    rel_ids: tuple[str, ...] = ()


def _digits(value: str | None) -> str | None:
    """Last number in a string without leading zeros, e.g. 'rId07' -> '7'."""
    if not value:
        return None
    found = _DIGITS.findall(value)
    if not found:
        return None
    return found[-1].lstrip("0") or "0"


def _run_referencing(paragraph: Paragraph, rel_id: str) -> int | None:
    for run in paragraph.runs:
        if rel_id in run.embedded_ids:
            return run.index
    return None


def _iter_placeholders(markup: str) -> Iterator[tuple[etree._Element, int | None]]:
    """Yield (drawing or pict element, enclosing direct run index) in document order."""
    if not markup:
        return

    root = etree.fromstring(markup.encode("utf-8"))
    run_positions = {run: position for position, run in enumerate(root.findall(_W_R))}

    for container in root.iter(_W_DRAWING, _W_PICT):
        run_index = None
        for ancestor in container.iterancestors(_W_R):
            run_index = run_positions.get(ancestor)
            break
        yield container, run_index


def _container_rel_ids(container: etree._Element) -> list[str]:
    rel_ids = []
    if container.tag == _W_DRAWING:
        for blip in container.iter(_BLIP):
            rel_id = blip.get(_R_EMBED) or blip.get(_R_LINK)
            if rel_id:
                rel_ids.append(rel_id)
    else:
        for imagedata in container.iter(_IMAGEDATA):
            rel_id = imagedata.get(_R_ID)
            if rel_id:
                rel_ids.append(rel_id)
    return rel_ids


def placeholders(markup: str) -> list[Placeholder]:
    """Every drawing or picture placeholder in a block, in document order."""
    return [
        Placeholder(run_index=run_index, rel_ids=tuple(_container_rel_ids(container)))
        for container, run_index in _iter_placeholders(markup)
    ]


def drawing_references(markup: str) -> list[DrawingReference]:
    """
    Collect picture references from block markup in document order.

    Descends w:drawing (inline and anchored DrawingML pictures) and legacy
    w:pict VML image data. The run index is the position of the enclosing
    direct w:r child of the block, None when the picture is nested deeper.

    Args:
        markup: Serialized block XML

    Returns:
        list[DrawingReference]: References, one per blip or imagedata element
    """
    return [
        DrawingReference(rel_id, placeholder.run_index)
        for placeholder in placeholders(markup)
        for rel_id in placeholder.rel_ids
    ]


def placeholder_runs(markup: str) -> list[int | None]:
    """Run index of every drawing or picture placeholder in a block, in order."""
    return [placeholder.run_index for placeholder in placeholders(markup)]


class ResolutionStrategy(ABC):
    """Base class for one link of the anchoring chain."""

    method: ResolutionMethod

    def __init__(self, context_paragraphs: int = 2, context_max_chars: int = 1000) -> None:
        """
        Initialize strategy.

        Args:
            context_paragraphs: Neighbouring paragraphs on each side used for context
            context_max_chars: Upper bound on the context string
        """
        self._context_paragraphs = context_paragraphs
        self._context_max_chars = context_max_chars

    def prepare(
        self,
        assets: Sequence[Asset],
        paragraphs: Sequence[Paragraph],
        resolved: Sequence[Asset],
    ) -> None:
        """Hook called once before the strategy runs over pending assets."""

    def attempt(self, asset: Asset, paragraphs: Sequence[Paragraph]) -> AssetPosition | None:
        """
        Locate an asset, scanning paragraphs top-down.

        Args:
            asset: Asset to locate
            paragraphs: Ordered paragraph sequence

        Returns:
            AssetPosition | None: Position from the first matching paragraph, or None
        """
        for paragraph in paragraphs:
            try:
                match = self.match(asset, paragraph)
            except Exception as e:
                logger.debug(
                    "Resolution strategy failed for paragraph",
                    extra={
                        "strategy": self.method.value,
                        "asset_index": asset.index,
                        "paragraph_index": paragraph.id,
                        "error_msg": str(e),
                    },
                )
                continue
            if match is not None:
                return self.build_position(paragraphs, paragraph, match.run_index)
        return None

    @abstractmethod
    def match(self, asset: Asset, paragraph: Paragraph) -> Match | None:
        """Return a Match when the paragraph hosts the asset."""

    def build_position(
        self,
        paragraphs: Sequence[Paragraph],
        paragraph: Paragraph,
        run_index: int | None,
    ) -> AssetPosition:
        return AssetPosition(
            paragraph_index=paragraph.id,
            run_index=run_index,
            char_offset_in_paragraph=paragraph.run_offset(run_index) if run_index is not None else 0,
            surrounding_text_context=self.surrounding_text(paragraphs, paragraph.id),
            resolution_method=self.method,
        )

    def surrounding_text(self, paragraphs: Sequence[Paragraph], index: int) -> str:
        """Non-empty texts of the paragraph and its neighbours, newline joined."""
        start = max(0, index - self._context_paragraphs)
        end = min(len(paragraphs), index + self._context_paragraphs + 1)
        context = "\n".join(p.text for p in paragraphs[start:end] if p.text)
        return context[: self._context_max_chars]


class DirectReferenceStrategy(ResolutionStrategy):
    """Paragraph markup names one of the asset's relationship ids."""

    method = ResolutionMethod.DIRECT_REFERENCE

    def match(self, asset: Asset, paragraph: Paragraph) -> Match | None:
        if not paragraph.markup:
            return None
        for rel_id in asset.relationship_ids:
            pattern = rf'r:(?:embed|link|id)="{re.escape(rel_id)}"'
            if re.search(pattern, paragraph.markup):
                return Match(run_index=_run_referencing(paragraph, rel_id))
        return None


class RunEmbeddingStrategy(ResolutionStrategy):
    """A run embeds a picture with the same bytes as the asset."""

    method = ResolutionMethod.RUN_EMBEDDING

    def match(self, asset: Asset, paragraph: Paragraph) -> Match | None:
        for run in paragraph.runs:
            if asset.content_hash in run.embedded_digests:
                return Match(run_index=run.index)
        return None


class StructuralDrawingStrategy(ResolutionStrategy):
    """
    Descend drawing markup and match picture references by id.

    Exact relationship-id matches always win. Otherwise a reference matches
    when its numeric suffix equals the suffix of one of the asset's
    relationship ids, of its part name, or its 1-based discovery index. A
    reference owned by another asset, or already taken by an earlier one, is
    skipped with an ambiguity warning.
    """

    method = ResolutionMethod.STRUCTURAL_DRAWING

    def __init__(self, context_paragraphs: int = 2, context_max_chars: int = 1000) -> None:
        super().__init__(context_paragraphs, context_max_chars)
        self._references: dict[int, list[DrawingReference]] = {}
        self._owners: dict[str, int] = {}
        self._claimed: dict[str, int] = {}

    def prepare(
        self,
        assets: Sequence[Asset],
        paragraphs: Sequence[Paragraph],
        resolved: Sequence[Asset],
    ) -> None:
        self._references = {}
        self._owners = {}
        self._claimed = {}
        for asset in assets:
            for rel_id in asset.relationship_ids:
                self._owners.setdefault(rel_id, asset.index)

    def _references_for(self, paragraph: Paragraph) -> list[DrawingReference]:
        if paragraph.id not in self._references:
            self._references[paragraph.id] = drawing_references(paragraph.markup)
        return self._references[paragraph.id]

    def match(self, asset: Asset, paragraph: Paragraph) -> Match | None:
        references = self._references_for(paragraph)
        if not references:
            return None

        for reference in references:
            if reference.rel_id in asset.relationship_ids:
                self._claimed.setdefault(reference.rel_id, asset.index)
                return Match(run_index=reference.run_index)

        suffixes = {_digits(rel_id) for rel_id in asset.relationship_ids}
        suffixes.add(_digits(asset.part_name))
        suffixes.add(str(asset.index + 1))
        suffixes.discard(None)

        for reference in references:
            if _digits(reference.rel_id) not in suffixes:
                continue
            owner = self._claimed.get(reference.rel_id, self._owners.get(reference.rel_id))
            if owner is not None and owner != asset.index:
                logger.warning(
                    "Ambiguous picture reference, already claimed by another asset",
                    extra={
                        "rel_id": reference.rel_id,
                        "asset_index": asset.index,
                        "owner_index": owner,
                        "paragraph_index": paragraph.id,
                    },
                )
                continue
            self._claimed[reference.rel_id] = asset.index
            return Match(run_index=reference.run_index)
        return None


class SequentialFallbackStrategy(ResolutionStrategy):
    """
    Pair remaining assets with free slots in document order, one asset per slot.

    Free picture placeholders come first: drawing or picture elements no
    anchored asset claims, matched by relationship id or run. Paragraphs with
    no anchored asset and no placeholder follow, one slot each.
    """

    method = ResolutionMethod.SEQUENTIAL_FALLBACK

    def __init__(self, context_paragraphs: int = 2, context_max_chars: int = 1000) -> None:
        super().__init__(context_paragraphs, context_max_chars)
        self._slots: deque[tuple[int, int | None]] = deque()

    def prepare(
        self,
        assets: Sequence[Asset],
        paragraphs: Sequence[Paragraph],
        resolved: Sequence[Asset],
    ) -> None:
        anchored: dict[int, list[Asset]] = {}
        for asset in resolved:
            if asset.is_anchored:
                anchored.setdefault(asset.position.paragraph_index, []).append(asset)

        placeholder_slots: list[tuple[int, int | None]] = []
        paragraph_slots: list[tuple[int, int | None]] = []
        for paragraph in paragraphs:
            try:
                found = placeholders(paragraph.markup)
            except Exception as e:
                logger.debug(
                    "Placeholder scan failed for paragraph",
                    extra={"paragraph_index": paragraph.id, "error_msg": str(e)},
                )
                found = []

            occupants = anchored.get(paragraph.id, [])
            free = _free_placeholders(found, occupants)
            if free:
                placeholder_slots.extend((paragraph.id, placeholder.run_index) for placeholder in free)
            elif not occupants:
                paragraph_slots.append((paragraph.id, None))

        self._slots = deque(placeholder_slots + paragraph_slots)

    def attempt(self, asset: Asset, paragraphs: Sequence[Paragraph]) -> AssetPosition | None:
        if not self._slots:
            return None
        paragraph_index, run_index = self._slots.popleft()
        return self.build_position(paragraphs, paragraphs[paragraph_index], run_index)

    def match(self, asset: Asset, paragraph: Paragraph) -> Match | None:
        return None


def _free_placeholders(found: Sequence[Placeholder], occupants: Sequence[Asset]) -> list[Placeholder]:
    """Placeholders left after each anchored asset claims the one it references."""
    free = list(found)
    unplaced = 0
    for asset in occupants:
        run_index = asset.position.run_index
        for position, placeholder in enumerate(free):
            if set(asset.relationship_ids) & set(placeholder.rel_ids) or (
                run_index is not None and placeholder.run_index == run_index
            ):
                del free[position]
                break
        else:
            unplaced += 1
    # Occupants with no identifiable placeholder take the earliest ones
    return free[unplaced:]


def default_strategies(
    context_paragraphs: int = 2,
    context_max_chars: int = 1000,
) -> list[ResolutionStrategy]:
    """Strategy chain in priority order."""
    return [
        strategy_class(context_paragraphs, context_max_chars)
        for strategy_class in (
            DirectReferenceStrategy,
            RunEmbeddingStrategy,
            StructuralDrawingStrategy,
            SequentialFallbackStrategy,
        )
    ]
