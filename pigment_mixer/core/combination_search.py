"""
Combination Search Module

전략별 물감 조합 탐색 및 조합별 혼합 비율 최적화.

The search is split in two steps so that structural problems surface before
any numeric work: plan() enumerates the subsets a strategy allows (raising on
an empty or insufficient catalogue), and run() optimises every subset's
weights against a resolved target curve. Subsets are independent, so run()
fans them out over a process pool and collects the results in subset order.
"""

import logging
import os
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from pigment_mixer.core.mix_simulator import simulate
from pigment_mixer.core.paint import Paint
from pigment_mixer.core.spectral_model import as_curve, curve_to_hex, curve_to_lab, reflectance_to_ks
from pigment_mixer.core.strategies import MixChoice, enumerate_subsets
from pigment_mixer.core.weight_optimizer import OptimizerConfig, optimize_weights
from pigment_mixer.utils.color_delta import get_delta_e

logger = logging.getLogger(__name__)


@dataclass
class SearchConfig:
    workers: Optional[int] = None  # None = os.cpu_count()
    delta_e_method: str = "cie76"
    chunk_size: int = 16
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)


@dataclass(frozen=True)
class MixResult:
    """
    An optimised mixture.

    Attributes:
        paint_ids: paint ids in subset order
        weights: simplex weights aligned with paint_ids
        curve: simulated reflectance of the mixture
        lab: Lab color of the mixture
        hex: display color of the mixture
        error: perceptual error against the target
        hex_colors: display colors of the paints, aligned with paint_ids
    """

    paint_ids: Tuple[str, ...]
    weights: Tuple[float, ...]
    curve: np.ndarray = field(repr=False, compare=False)
    lab: Tuple[float, float, float]
    hex: str
    error: float
    hex_colors: Tuple[str, ...] = ()

    @property
    def n_paints(self) -> int:
        return len(self.paint_ids)


@dataclass(frozen=True)
class SearchPlan:
    choice: MixChoice
    subsets: Tuple[Tuple[Paint, ...], ...]

    @property
    def size(self) -> int:
        return len(self.subsets)

    def paints(self) -> List[Paint]:
        """Distinct paints used by the plan, in first-use order."""
        seen = {}
        for subset in self.subsets:
            for paint in subset:
                seen.setdefault(paint.id, paint)
        return list(seen.values())


class SubsetEvaluator:
    """
    Optimises one subset at a time against a fixed target.

    Holds only immutable inputs; returns plain tuples so results cross
    process boundaries cheaply.
    """

    def __init__(self, ks_table: np.ndarray, target_lab: Sequence[float], optimizer_config: OptimizerConfig):
        self.ks_table = ks_table
        self.target_lab = np.asarray(target_lab, dtype=np.float64)
        self.optimizer_config = optimizer_config

    def __call__(self, indices: Tuple[int, ...]) -> Optional[Tuple[Tuple[float, ...], float]]:
        result = optimize_weights(self.ks_table[list(indices)], self.target_lab, self.optimizer_config)
        if result is None:
            return None
        return tuple(float(w) for w in result.weights), result.error


_worker_evaluator: Optional[SubsetEvaluator] = None


def _init_worker(ks_table: np.ndarray, target_lab: Sequence[float], optimizer_config: OptimizerConfig):
    """Install the shared search inputs in worker globals."""
    global _worker_evaluator
    _worker_evaluator = SubsetEvaluator(ks_table, target_lab, optimizer_config)


def _evaluate_subset(indices: Tuple[int, ...]) -> Optional[Tuple[Tuple[float, ...], float]]:
    return _worker_evaluator(indices)


class CombinationSearch:
    """
    Enumerate strategy subsets and optimise their mixing weights.

    Example:
        >>> search = CombinationSearch(SearchConfig(workers=1))
        >>> results = search.search(target_curve, paints, MixChoice.BLACK_WHITE_2)
    """

    def __init__(self, config: Optional[SearchConfig] = None):
        self.config = config or SearchConfig()
        self._delta_e = get_delta_e(self.config.delta_e_method)

    def plan(self, paints: Sequence[Paint], choice: MixChoice) -> SearchPlan:
        """
        Enumerate the subsets a strategy allows.

        Raises:
            EmptyCatalogueError: no paints
            InsufficientPaintsError: catalogue cannot satisfy the strategy
        """
        choice = MixChoice.parse(choice)
        subsets = enumerate_subsets(paints, choice)
        logger.info(f"Planned {len(subsets)} candidate subsets for strategy '{choice.label}'")
        return SearchPlan(choice=choice, subsets=tuple(subsets))

    def run(self, plan: SearchPlan, target_curve: Sequence[float]) -> List[MixResult]:
        """
        Optimise every subset of a plan against the target curve.

        Returns:
            One MixResult per subset with a finite error, in plan order
        """
        target_curve = as_curve(target_curve)
        target_lab = curve_to_lab(target_curve)

        paints = plan.paints()
        index_of = {paint.id: i for i, paint in enumerate(paints)}
        ks_table = reflectance_to_ks(np.stack([paint.curve for paint in paints])) if paints else np.zeros((0, 0))
        jobs = [tuple(index_of[p.id] for p in subset) for subset in plan.subsets]

        outcomes = self._evaluate(jobs, ks_table, target_lab)

        results = []
        for subset, outcome in zip(plan.subsets, outcomes):
            result = self._build_result(subset, outcome, target_lab)
            if result is not None:
                results.append(result)

        logger.info(f"Optimised {len(jobs)} subsets, {len(results)} finite results")
        return results

    def search(self, target_curve: Sequence[float], paints: Sequence[Paint], choice: MixChoice) -> List[MixResult]:
        return self.run(self.plan(paints, choice), target_curve)

    def _worker_count(self, n_jobs: int) -> int:
        workers = self.config.workers or os.cpu_count() or 1
        return max(1, min(workers, n_jobs))

    def _evaluate(self, jobs, ks_table, target_lab) -> list:
        if not jobs:
            return []

        workers = self._worker_count(len(jobs))
        optimizer_config = self.config.optimizer

        if workers == 1:
            evaluator = SubsetEvaluator(ks_table, target_lab, optimizer_config)
            return [evaluator(job) for job in jobs]

        logger.info(f"Evaluating {len(jobs)} subsets on {workers} worker processes")
        with ProcessPoolExecutor(
            max_workers=workers,
            initializer=_init_worker,
            initargs=(ks_table, target_lab, optimizer_config),
        ) as executor:
            return list(executor.map(_evaluate_subset, jobs, chunksize=max(1, self.config.chunk_size)))

    def _build_result(self, subset, outcome, target_lab) -> Optional[MixResult]:
        ids = tuple(p.id for p in subset)
        if outcome is None:
            logger.debug(f"Discarding {ids}: optimizer produced no finite error")
            return None

        weights, _ = outcome
        try:
            curve = simulate(subset, weights)
        except ValueError as e:
            logger.debug(f"Discarding {ids}: {e}")
            return None

        lab = curve_to_lab(curve)
        error = float(self._delta_e(lab, target_lab))
        if not (np.all(np.isfinite(lab)) and np.isfinite(error)):
            logger.debug(f"Discarding {ids}: non-finite mixture color")
            return None

        return MixResult(
            paint_ids=ids,
            weights=weights,
            curve=curve,
            lab=(float(lab[0]), float(lab[1]), float(lab[2])),
            hex=curve_to_hex(curve),
            error=error,
            hex_colors=tuple(p.hex for p in subset),
        )
