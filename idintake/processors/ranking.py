"""Candidate ranking strategies for reference lookups.

``FirstResultRanking`` keeps the store's own order (name ascending), which is
what the address pickers have always shown. ``SimilarityRanking`` re-scores
candidates against the query with rapidfuzz and is opt-in.
"""

import logging
from typing import Optional, Sequence, TypeVar

from rapidfuzz import fuzz, utils

from idintake.domain.models import GeoReferenceEntry

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=GeoReferenceEntry)


class FirstResultRanking:
    name = "first"

    def pick(self, query: str, candidates: Sequence[E]) -> Optional[E]:
        return candidates[0] if candidates else None


class SimilarityRanking:
    """Highest rapidfuzz ``WRatio`` wins; ties keep the store's order.

    Args:
        min_score: Candidates scoring below this (0-100) are never picked
    """

    name = "similarity"

    def __init__(self, min_score: float = 0.0):
        self.min_score = min_score

    def score(self, query: str, candidate_name: str) -> float:
        return fuzz.WRatio(query, candidate_name, processor=utils.default_process)

    def pick(self, query: str, candidates: Sequence[E]) -> Optional[E]:
        best: Optional[E] = None
        best_score = -1.0
        for candidate in candidates:
            candidate_score = self.score(query, candidate.name)
            if candidate_score > best_score:
                best, best_score = candidate, candidate_score
        if best is None or best_score < self.min_score:
            return None
        logger.debug("Picked %r for %r (score=%.1f)", best.name, query, best_score)
        return best


RANKING_STRATEGIES = {
    FirstResultRanking.name: FirstResultRanking,
    SimilarityRanking.name: SimilarityRanking,
}


def get_ranking_strategy(name: str):
    try:
        return RANKING_STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown ranking strategy: {name}") from None
