"""
Weight Optimizer Module

Finds mixing weights on the probability simplex that minimise the CIE76
distance between a Kubelka-Munk mixture and the target Lab color.

Projected descent with an analytic Jacobian, run from several deterministic
starting points at once (one batch row per restart). Each iteration tries two
candidate moves per restart and keeps the better one if it improves:

- a Gauss-Newton step in the simplex tangent space (fast near a solution)
- a normalised steepest-descent step (robust when Gauss-Newton stalls)

Both candidates are projected back onto the simplex. Step lengths grow on
success and halve on failure.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from pigment_mixer.core.spectral_model import (
    T_MATRIX,
    WHITE_POINT_XYZ,
    ks_to_reflectance,
    ks_to_reflectance_derivative,
)
from pigment_mixer.utils.color_space import xyz_to_lab, xyz_to_lab_jacobian

logger = logging.getLogger(__name__)


@dataclass
class OptimizerConfig:
    max_iterations: int = 200
    initial_step: float = 0.1  # gradient step length (simplex units)
    max_step: float = 0.5
    min_step: float = 1e-7
    tolerance: float = 1e-6  # ΔE at which a restart counts as an exact match
    restart_bias: float = 0.6


@dataclass
class OptimizationResult:
    weights: np.ndarray
    error: float
    iterations: int


def project_to_simplex(w: np.ndarray, s: float = 1.0) -> np.ndarray:
    """
    Euclidean projection onto the simplex (w >= 0, sum(w) = s).

    Accepts a single vector or a batch of row vectors.
    """
    w = np.asarray(w, dtype=np.float64)
    rows = np.atleast_2d(w)
    n = rows.shape[1]

    u = -np.sort(-rows, axis=1)
    cssv = np.cumsum(u, axis=1) - s
    cond = u * np.arange(1, n + 1) > cssv
    rho = n - 1 - np.argmax(cond[:, ::-1], axis=1)  # last index where cond holds
    theta = cssv[np.arange(rows.shape[0]), rho] / (rho + 1.0)

    projected = np.maximum(rows - theta[:, None], 0.0)
    return projected.reshape(w.shape)


def initial_weights(n_paints: int, bias: float = 0.6) -> np.ndarray:
    """
    Deterministic restart points: the uniform mix, then one start leaning on each paint.

    Returns:
        Array of shape (n_paints + 1, n_paints); a single paint gets one row.
    """
    if n_paints == 1:
        return np.ones((1, 1))

    uniform = np.full((1, n_paints), 1.0 / n_paints)
    biased = np.full((n_paints, n_paints), (1.0 - bias) / (n_paints - 1))
    np.fill_diagonal(biased, bias)
    return np.vstack([uniform, biased])


class WeightOptimizer:
    """
    Batched projected descent for one paint subset.

    Args:
        ks_curves: K/S curves of the subset's paints, shape (k, 31)
        target_lab: Lab color to match
        config: optimizer settings
    """

    def __init__(self, ks_curves: np.ndarray, target_lab: Sequence[float], config: Optional[OptimizerConfig] = None):
        self.ks_curves = np.asarray(ks_curves, dtype=np.float64)
        self.target_lab = np.asarray(target_lab, dtype=np.float64)
        self.config = config or OptimizerConfig()

    def evaluate(self, weights: np.ndarray) -> Tuple[np.ndarray, dict]:
        """
        CIE76 error of each weight row.

        Returns:
            (errors, state) where state keeps the intermediates the derivatives need.
        """
        mixed_ks = weights @ self.ks_curves
        xyz = ks_to_reflectance(mixed_ks) @ T_MATRIX.T
        diff = xyz_to_lab(xyz, WHITE_POINT_XYZ) - self.target_lab
        errors = np.sqrt(np.sum(diff * diff, axis=1))
        return errors, {"mixed_ks": mixed_ks, "xyz": xyz, "diff": diff}

    def lab_jacobian(self, state: dict) -> np.ndarray:
        """dLab/dw for each weight row, shape (R, 3, k)."""
        d_lab_d_xyz = xyz_to_lab_jacobian(state["xyz"], WHITE_POINT_XYZ)
        d_lab_d_r = np.einsum("rij,jb->rib", d_lab_d_xyz, T_MATRIX)
        d_lab_d_ks = d_lab_d_r * ks_to_reflectance_derivative(state["mixed_ks"])[:, None, :]
        return d_lab_d_ks @ self.ks_curves.T

    def gradient(self, errors: np.ndarray, state: dict, jacobian: Optional[np.ndarray] = None) -> np.ndarray:
        """dΔE/dw for each weight row, shape (R, k)."""
        if jacobian is None:
            jacobian = self.lab_jacobian(state)
        safe = np.where(errors > 0, errors, 1.0)
        return np.einsum("ri,rik->rk", state["diff"] / safe[:, None], jacobian)

    def _directions(self, errors: np.ndarray, state: dict) -> Tuple[np.ndarray, np.ndarray]:
        """Gauss-Newton and unit steepest-descent directions, both summing to zero."""
        n_rows, k = state["diff"].shape[0], self.ks_curves.shape[0]
        tangent = np.eye(k) - 1.0 / k

        jac = self.lab_jacobian(state) @ tangent
        grad = self.gradient(errors, state, jac)

        gauss_newton = np.zeros((n_rows, k))
        finite = np.all(np.isfinite(jac), axis=(1, 2)) & np.all(np.isfinite(state["diff"]), axis=1)
        if finite.any():
            gauss_newton[finite] = -(np.linalg.pinv(jac[finite]) @ state["diff"][finite][:, :, None])[:, :, 0]

        norm = np.linalg.norm(grad, axis=1)
        usable = np.isfinite(norm) & (norm > 0)
        descent = np.zeros((n_rows, k))
        descent[usable] = -grad[usable] / norm[usable, None]

        return gauss_newton, descent

    def _accept(self, mask: np.ndarray, weights, errors, state, candidate, cand_errors, cand_state):
        weights[mask] = candidate[mask]
        errors[mask] = cand_errors[mask]
        for key, value in cand_state.items():
            state[key][mask] = value[mask]

    def optimize(self) -> Optional[OptimizationResult]:
        cfg = self.config
        n_paints = self.ks_curves.shape[0]

        weights = initial_weights(n_paints, cfg.restart_bias)
        errors, state = self.evaluate(weights)
        n_rows = weights.shape[0]

        gn_scale = np.ones(n_rows)
        gd_step = np.full(n_rows, cfg.initial_step)
        active = np.isfinite(errors) & (errors >= cfg.tolerance)

        iteration = 0
        while iteration < cfg.max_iterations and active.any():
            iteration += 1

            gauss_newton, descent = self._directions(errors, state)

            gn_candidate = project_to_simplex(weights + gn_scale[:, None] * gauss_newton)
            gd_candidate = project_to_simplex(weights + gd_step[:, None] * descent)
            gn_errors, gn_state = self.evaluate(gn_candidate)
            gd_errors, gd_state = self.evaluate(gd_candidate)

            gn_ok = active & np.isfinite(gn_errors) & (gn_errors < errors)
            gd_ok = active & np.isfinite(gd_errors) & (gd_errors < errors)
            use_gn = gn_ok & (~gd_ok | (gn_errors <= gd_errors))
            use_gd = gd_ok & ~use_gn

            self._accept(use_gn, weights, errors, state, gn_candidate, gn_errors, gn_state)
            self._accept(use_gd, weights, errors, state, gd_candidate, gd_errors, gd_state)

            gn_scale = np.where(gn_ok, np.minimum(gn_scale * 2.0, 1.0), np.where(active, gn_scale * 0.5, gn_scale))
            gd_step = np.where(gd_ok, np.minimum(gd_step * 1.5, cfg.max_step), np.where(active, gd_step * 0.5, gd_step))
            active &= (np.maximum(gn_scale, gd_step) >= cfg.min_step) & (errors >= cfg.tolerance)

        finite = np.isfinite(errors)
        if not finite.any():
            return None

        best = int(np.argmin(np.where(finite, errors, np.inf)))
        logger.debug(f"Optimised {n_paints} weights in {iteration} iterations (ΔE {errors[best]:.4f})")
        return OptimizationResult(weights=weights[best].copy(), error=float(errors[best]), iterations=iteration)


def optimize_weights(
    ks_curves: np.ndarray, target_lab: Sequence[float], config: Optional[OptimizerConfig] = None
) -> Optional[OptimizationResult]:
    """
    Best simplex weights for mixing the given K/S curves towards target_lab.

    Returns:
        OptimizationResult, or None when no restart produced a finite error
    """
    return WeightOptimizer(ks_curves, target_lab, config).optimize()
