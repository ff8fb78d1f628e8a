"""
Mixing Pipeline Module

목표색 → 분광 곡선 복원 → 조합 탐색 → 결과 정렬로 이어지는 엔드투엔드 파이프라인.
"""

import logging
from dataclasses import fields
from typing import List, Optional, Sequence, Union

import numpy as np

from pigment_mixer.core.combination_search import CombinationSearch, MixResult, SearchConfig
from pigment_mixer.core.mix_simulator import parts_to_weights, simulate
from pigment_mixer.core.paint import Paint
from pigment_mixer.core.reconstructor import ReconstructorConfig, SpectralReconstructor
from pigment_mixer.core.result_ranker import RankerConfig, ResultRanker
from pigment_mixer.core.spectral_model import curve_to_hex
from pigment_mixer.core.strategies import MixChoice
from pigment_mixer.core.target import TargetColor
from pigment_mixer.core.weight_optimizer import OptimizerConfig
from pigment_mixer.data.config_manager import ConfigManager

logger = logging.getLogger(__name__)

TargetLike = Union[TargetColor, str, Sequence[float], np.ndarray]


def _config_from_section(cls, section: dict):
    """Build a config dataclass from a config section, ignoring unknown keys."""
    known = {f.name for f in fields(cls)}
    unknown = set(section) - known
    if unknown:
        logger.warning(f"Ignoring unknown {cls.__name__} keys: {', '.join(sorted(unknown))}")
    return cls(**{k: v for k, v in section.items() if k in known})


class MixingPipeline:
    """
    End-to-end mixture search.

    TargetColor → SpectralReconstructor → CombinationSearch → ResultRanker

    Example:
        >>> pipeline = MixingPipeline()
        >>> results = pipeline.find_best_mixtures("#6b8e23", paints, MixChoice.BLACK_WHITE_2)
        >>> results[0].paint_ids, results[0].weights
    """

    def __init__(
        self,
        reconstructor_config: Optional[ReconstructorConfig] = None,
        search_config: Optional[SearchConfig] = None,
        ranker_config: Optional[RankerConfig] = None,
    ):
        self.reconstructor = SpectralReconstructor(reconstructor_config or ReconstructorConfig())
        self.search = CombinationSearch(search_config or SearchConfig())
        self.ranker = ResultRanker(ranker_config or RankerConfig())

        logger.info("MixingPipeline initialized")

    @classmethod
    def from_config(cls, config: ConfigManager) -> "MixingPipeline":
        """Build a pipeline from the reconstruction / optimizer / search / ranking sections."""
        search_section = config.section("search")
        search_section["optimizer"] = _config_from_section(OptimizerConfig, config.section("optimizer"))

        return cls(
            reconstructor_config=_config_from_section(ReconstructorConfig, config.section("reconstruction")),
            search_config=_config_from_section(SearchConfig, search_section),
            ranker_config=_config_from_section(RankerConfig, config.section("ranking")),
        )

    def find_best_mixtures(
        self, target: TargetLike, paints: Sequence[Paint], strategy: Union[MixChoice, str]
    ) -> List[MixResult]:
        """
        Best mixtures of the given paints for a target color.

        Args:
            target: hex string, "L,a,b" string, Lab triple, spectral curve or TargetColor
            paints: catalogue already filtered by the caller
            strategy: MixChoice or its label/slug

        Returns:
            Ranked MixResults, best first

        Raises:
            EmptyCatalogueError: no paints
            InsufficientPaintsError: strategy cannot be satisfied
            ReconstructionError: target has no plausible spectral curve
        """
        choice = MixChoice.parse(strategy)

        # Structural checks first: no reconstruction work for an unusable catalogue
        plan = self.search.plan(paints, choice)

        target = TargetColor.parse(target)
        target_curve = target.resolve(self.reconstructor)
        logger.info(f"Target {target.hex or target.lab} resolved from {target.source}")

        results = self.search.run(plan, target_curve)
        return self.ranker.rank(results)

    def test_mix(self, paints: Sequence[Paint], parts: Sequence[float]) -> str:
        """
        Display color of a user-entered mixture.

        Args:
            paints: paints to mix
            parts: relative amounts, normalised to weights

        Returns:
            Hex color; a single paint returns its stored catalogue color

        Raises:
            ValueError: length mismatch, no paints, or parts summing to zero
        """
        if not paints:
            raise ValueError("No paints to mix")
        if len(paints) != len(parts):
            raise ValueError(f"Got {len(paints)} paints but {len(parts)} parts")

        weights = parts_to_weights(parts)
        if len(paints) == 1:
            return paints[0].hex

        return curve_to_hex(simulate(paints, weights))


def find_best_mixtures(
    target: TargetLike,
    paints: Sequence[Paint],
    strategy: Union[MixChoice, str],
    config: Optional[ConfigManager] = None,
) -> List[MixResult]:
    """Convenience wrapper around MixingPipeline.find_best_mixtures."""
    pipeline = MixingPipeline.from_config(config) if config is not None else MixingPipeline()
    return pipeline.find_best_mixtures(target, paints, strategy)
