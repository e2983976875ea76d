"""
Asset anchoring task.

Runs the resolution strategy chain over every extracted asset and groups the
positioned assets by paragraph. Assets no strategy can place end up in the
unassigned bucket; nothing is dropped.

Dependencies: resolution_strategies
System role: Third stage of document ingestion pipeline (after extraction)
"""

import logging
from collections.abc import Sequence

from docstruct.observability.log_utils import log_exception_with_context, log_with_context

from ..models import AnchorMap, Asset, AssetPosition, Paragraph, ResolutionMethod
from .resolution_strategies import ResolutionStrategy, default_strategies

logger = logging.getLogger(__name__)


class AnchoringTask:
    """Anchor assets to paragraphs with an ordered strategy chain."""

    def __init__(
        self,
        strategies: list[ResolutionStrategy] | None = None,
        context_paragraphs: int = 2,
        context_max_chars: int = 1000,
    ) -> None:
        """
        Initialize anchoring task.

        Args:
            strategies: Strategy chain in priority order (defaults to the four built-in strategies)
            context_paragraphs: Neighbouring paragraphs used for surrounding context
            context_max_chars: Upper bound on surrounding context length
        """
        self._strategies = (
            strategies
            if strategies is not None
            else default_strategies(context_paragraphs, context_max_chars)
        )

    def resolve(self, paragraphs: Sequence[Paragraph], assets: Sequence[Asset]) -> AnchorMap:
        """
        Produce exactly one position per asset.

        Strategies run in priority order; each one only sees the assets the
        previous strategies left unresolved, in discovery order.

        Args:
            paragraphs: Ordered paragraph sequence
            assets: Unpositioned assets in discovery order

        Returns:
            AnchorMap: Anchored assets per paragraph plus the unassigned bucket
        """
        pending = sorted(assets, key=lambda asset: asset.index)
        resolved: list[Asset] = []

        for strategy in self._strategies:
            if not pending:
                break
            try:
                strategy.prepare(assets, paragraphs, resolved)
            except Exception as e:
                log_exception_with_context(
                    logger,
                    "Resolution strategy setup failed, skipping strategy",
                    e,
                    level=logging.WARNING,
                    strategy=strategy.method.value,
                )
                continue

            still_pending = []
            for asset in pending:
                position = strategy.attempt(asset, paragraphs)
                if position is None:
                    still_pending.append(asset)
                    continue
                resolved.append(asset.with_position(position))
                logger.debug(
                    "Asset anchored",
                    extra={
                        "asset_index": asset.index,
                        "paragraph_index": position.paragraph_index,
                        "strategy": strategy.method.value,
                    },
                )
            pending = still_pending

        unassigned = [
            asset.with_position(AssetPosition(resolution_method=ResolutionMethod.UNASSIGNED))
            for asset in pending
        ]
        if unassigned:
            logger.warning(
                "Assets could not be anchored",
                extra={"unassigned_indices": [asset.index for asset in unassigned]},
            )

        anchors: dict[int, list[Asset]] = {}
        for asset in sorted(resolved, key=self._placement_key):
            anchors.setdefault(asset.position.paragraph_index, []).append(asset)

        log_with_context(
            logger,
            logging.INFO,
            "Anchored assets",
            anchored_count=len(resolved),
            unassigned_count=len(unassigned),
        )
        return AnchorMap(anchors=anchors, unassigned=unassigned)

    @staticmethod
    def _placement_key(asset: Asset) -> tuple[int, int, int]:
        position = asset.position
        run_index = position.run_index if position.run_index is not None else -1
        return (position.paragraph_index, run_index, asset.index)
