"""
Core Algorithm Modules

Contains the main algorithmic components for spectral paint mixing:
- SpectralModel: reflectance ↔ K/S ↔ Lab conversions (spectral_model)
- SpectralReconstructor: smoothest reflectance curve for a Lab target
- MixSimulator: Kubelka-Munk mixing of paint curves (mix_simulator)
- CombinationSearch: strategy subsets + simplex weight optimisation
- ResultRanker: dedup, sort and top-K of mixtures
"""

from pigment_mixer.core.combination_search import CombinationSearch, MixResult, SearchConfig, SearchPlan
from pigment_mixer.core.errors import (
    EmptyCatalogueError,
    InsufficientPaintsError,
    MixingError,
    ReconstructionError,
    SearchError,
)
from pigment_mixer.core.mix_simulator import simulate
from pigment_mixer.core.paint import Paint, PaintRole
from pigment_mixer.core.reconstructor import ReconstructorConfig, SpectralReconstructor
from pigment_mixer.core.result_ranker import RankerConfig, ResultRanker
from pigment_mixer.core.strategies import MixChoice
from pigment_mixer.core.target import TargetColor
from pigment_mixer.core.weight_optimizer import OptimizerConfig

__all__ = [
    "CombinationSearch",
    "EmptyCatalogueError",
    "InsufficientPaintsError",
    "MixChoice",
    "MixResult",
    "MixingError",
    "OptimizerConfig",
    "Paint",
    "PaintRole",
    "RankerConfig",
    "ReconstructionError",
    "ReconstructorConfig",
    "ResultRanker",
    "SearchConfig",
    "SearchError",
    "SearchPlan",
    "SpectralReconstructor",
    "TargetColor",
    "simulate",
]
