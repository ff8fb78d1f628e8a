"""
Result Ranker Module

Sorts optimised mixtures by error, drops near-duplicates and keeps the top K.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np

from pigment_mixer.core.combination_search import MixResult

logger = logging.getLogger(__name__)


@dataclass
class RankerConfig:
    top_k: Optional[int] = 5  # None keeps every result
    weight_tolerance: float = 1e-4


def _sort_key(result: MixResult):
    # Simpler mixtures win ties; ids make the order total
    return (result.error, result.n_paints, result.paint_ids)


class ResultRanker:
    def __init__(self, config: Optional[RankerConfig] = None):
        self.config = config or RankerConfig()

    def is_duplicate(self, a: MixResult, b: MixResult) -> bool:
        """Same paint set with weights (aligned by paint id) within tolerance."""
        if set(a.paint_ids) != set(b.paint_ids):
            return False

        b_weights = dict(zip(b.paint_ids, b.weights))
        aligned = np.array([b_weights[pid] for pid in a.paint_ids])
        return bool(np.all(np.abs(np.asarray(a.weights) - aligned) <= self.config.weight_tolerance))

    def rank(self, results: Iterable[MixResult]) -> List[MixResult]:
        """
        Order results best first.

        Args:
            results: candidate mixtures, any order

        Returns:
            At most top_k results, error non-decreasing
        """
        ordered = sorted(results, key=_sort_key)

        kept: List[MixResult] = []
        for result in ordered:
            if any(self.is_duplicate(result, other) for other in kept):
                logger.debug(f"Dropping duplicate mixture {result.paint_ids}")
                continue
            kept.append(result)

        top_k = self.config.top_k
        if top_k is not None:
            kept = kept[: max(0, top_k)]

        logger.info(f"Ranked {len(ordered)} results, returning {len(kept)}")
        return kept
