"""Result fusion for hybrid search.

Keyword relevance and vector similarity live on different scales. Keyword
scores get a fixed boost reflecting lexical-match precision; an id found by
both engines gets the mean of its boosted keyword score and its semantic
score; semantic-only ids keep their raw similarity.
"""

from typing import Dict, List, Sequence

import structlog

from ..models import BaseHit

logger = structlog.get_logger("search_fusion")

KEYWORD_BOOST = 1.2


class RankFusionAlgorithm:
    """Base class for rank fusion algorithms."""

    def fuse_results(
        self,
        keyword_hits: Sequence[BaseHit],
        semantic_hits: Sequence[BaseHit],
        limit: int
    ) -> List[BaseHit]:
        """Fuse keyword and semantic hits into one ordering of at most ``limit``."""
        raise NotImplementedError


class BoostedAverageFusion(RankFusionAlgorithm):
    """Boost keyword scores, average scores of ids found by both engines."""

    def __init__(self, keyword_boost: float = KEYWORD_BOOST):
        self.keyword_boost = keyword_boost

    def fuse_results(
        self,
        keyword_hits: Sequence[BaseHit],
        semantic_hits: Sequence[BaseHit],
        limit: int
    ) -> List[BaseHit]:
        fused: Dict[str, BaseHit] = {}

        for hit in keyword_hits:
            boosted = hit.model_copy(update={"score": hit.score * self.keyword_boost})
            existing = fused.get(hit.id)
            if existing is None or boosted.score > existing.score:
                fused[hit.id] = boosted

        overlap = 0
        for hit in semantic_hits:
            existing = fused.get(hit.id)
            if existing is None:
                fused[hit.id] = hit
            else:
                overlap += 1
                fused[hit.id] = existing.model_copy(
                    update={"score": (existing.score + hit.score) / 2}
                )

        # Stable sort: ties keep keyword-first insertion order.
        ranked = sorted(fused.values(), key=lambda hit: hit.score, reverse=True)[:limit]

        logger.info(
            "Hybrid fusion completed",
            keyword_count=len(keyword_hits),
            semantic_count=len(semantic_hits),
            overlap_count=overlap,
            fused_count=len(ranked)
        )
        return ranked


def merge_hit_lists(hit_lists: Sequence[Sequence[BaseHit]]) -> List[BaseHit]:
    """Concatenate per-index hit lists, keeping one hit per id.

    A repeated id keeps its first position and the highest score seen.
    """
    merged: Dict[str, BaseHit] = {}
    for hits in hit_lists:
        for hit in hits:
            existing = merged.get(hit.id)
            if existing is None or hit.score > existing.score:
                merged[hit.id] = hit
    return list(merged.values())


def create_fusion_algorithm(algorithm: str = "boosted_average", **params) -> RankFusionAlgorithm:
    """Create a fusion algorithm by name."""
    if algorithm == "boosted_average":
        return BoostedAverageFusion(**params)
    raise ValueError(f"Unknown fusion algorithm: {algorithm}")
