"""
Spectral Reconstructor Module

Lab 목표색으로부터 31-band 분광 반사율 곡선을 복원한다.

Infinitely many reflectance curves produce the same color (metamerism). The
reconstructor picks the smoothest one: it minimises the squared slope of a
tanh-parameterised curve, ρ(z) = (tanh z + 1) / 2, subject to the curve's XYZ
matching the target. Because Lab is a bijection of XYZ, matching XYZ is the
same as matching Lab. The constrained problem is solved with Newton-Raphson
iterations on its Lagrangian optimality conditions.

Reference:
- Burns, S. A. (2015). "Numerical methods for smoothest reflectance
  reconstruction." Color Research & Application, 45(1), 8-21.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy import linalg

from pigment_mixer.core.errors import ReconstructionError
from pigment_mixer.core.spectral_model import (
    N_BANDS,
    T_MATRIX,
    as_curve,
    curve_to_lab,
    delta_e,
    lab_to_target_xyz,
)
from pigment_mixer.utils.color_space import validate_standard_lab

logger = logging.getLogger(__name__)

BLACK_REFLECTANCE = 1e-4


@dataclass
class ReconstructorConfig:
    max_iterations: int = 500
    tolerance: float = 1e-6  # max |residual| of the optimality conditions
    acceptable_delta_e: float = 1.0


@dataclass
class Reconstruction:
    """
    Reconstruction outcome.

    Attributes:
        curve: reconstructed reflectance (31 samples, read-only)
        lab: Lab color of the curve
        delta_e: CIE76 distance between the curve's color and the target
        iterations: Newton iterations performed
        converged: residual fell below tolerance
    """

    curve: np.ndarray
    lab: Tuple[float, float, float]
    delta_e: float
    iterations: int
    converged: bool


def _difference_matrix(n: int) -> np.ndarray:
    """Gram matrix of first differences (scaled by 2): sum of squared slopes = ½ zᵀDz."""
    d = np.diag(np.full(n, 4.0)) - np.diag(np.full(n - 1, 2.0), 1) - np.diag(np.full(n - 1, 2.0), -1)
    d[0, 0] = 2.0
    d[-1, -1] = 2.0
    return d


class SpectralReconstructor:
    """
    Smoothest-curve spectral reconstruction from a Lab target.

    Deterministic: always starts from the flat 50% curve.
    """

    def __init__(self, config: Optional[ReconstructorConfig] = None):
        self.config = config or ReconstructorConfig()
        self._t = T_MATRIX
        self._d = _difference_matrix(N_BANDS)

    def reconstruct(self, lab: Sequence[float]) -> np.ndarray:
        """
        Reconstruct a reflectance curve for a Lab target.

        Raises:
            ReconstructionError: no curve within the acceptable delta E
        """
        return self.solve(lab).curve

    def solve(self, lab: Sequence[float]) -> Reconstruction:
        target = np.asarray(lab, dtype=np.float64).ravel()
        if target.size != 3 or not np.all(np.isfinite(target)):
            raise ReconstructionError(f"Target must be a finite Lab triple, got {lab!r}")

        L, a, b = (float(v) for v in target)
        if not validate_standard_lab(L, a, b, tolerance=0.0):
            raise ReconstructionError(f"Lab target out of range: ({L:.2f}, {a:.2f}, {b:.2f})")

        # Degenerate endpoints the tanh parameterisation cannot reach
        if L >= 100.0 - 1e-9 and abs(a) < 1e-6 and abs(b) < 1e-6:
            return self._finish(np.ones(N_BANDS), target, iterations=0, converged=True)
        if L <= 1e-9:
            return self._finish(np.full(N_BANDS, BLACK_REFLECTANCE), target, iterations=0, converged=True)

        target_xyz = lab_to_target_xyz(target)
        t = self._t
        n = N_BANDS

        z = np.zeros(n)
        lam = np.zeros(3)
        best_z = z.copy()
        best_residual = np.inf
        converged = False
        iteration = 0

        for iteration in range(1, self.config.max_iterations + 1):
            tanh_z = np.tanh(z)
            sech2 = 1.0 - tanh_z**2
            rho = (tanh_z + 1.0) / 2.0
            d1 = sech2 / 2.0  # dρ/dz
            d2 = -sech2 * tanh_z  # d²ρ/dz²

            t_lam = t.T @ lam
            residual = np.concatenate([self._d @ z + d1 * t_lam, t @ rho - target_xyz])
            if not np.all(np.isfinite(residual)):
                logger.debug(f"Non-finite residual at iteration {iteration}; stopping")
                break

            residual_norm = float(np.linalg.norm(residual))
            if residual_norm < best_residual:
                best_residual = residual_norm
                best_z = z.copy()

            if np.max(np.abs(residual)) < self.config.tolerance:
                converged = True
                best_z = z
                break

            jacobian = np.zeros((n + 3, n + 3))
            jacobian[:n, :n] = self._d + np.diag(d2 * t_lam)
            jacobian[:n, n:] = d1[:, None] * t.T
            jacobian[n:, :n] = t * d1[None, :]

            step = self._solve_step(jacobian, -residual)
            if not np.all(np.isfinite(step)):
                logger.debug(f"Non-finite Newton step at iteration {iteration}; stopping")
                break

            z = z + step[:n]
            lam = lam + step[n:]

        curve = (np.tanh(best_z) + 1.0) / 2.0

        if not converged:
            logger.warning(
                f"Reconstruction for Lab ({L:.2f}, {a:.2f}, {b:.2f}) did not converge "
                f"after {iteration} iterations (best residual {best_residual:.3e}); using best curve"
            )

        return self._finish(curve, target, iterations=iteration, converged=converged)

    def _solve_step(self, jacobian: np.ndarray, rhs: np.ndarray) -> np.ndarray:
        try:
            return linalg.solve(jacobian, rhs)
        except linalg.LinAlgError:
            # Singular Jacobian (saturated tanh); minimum-norm least squares step
            return linalg.lstsq(jacobian, rhs)[0]

    def _finish(self, curve: np.ndarray, target: np.ndarray, iterations: int, converged: bool) -> Reconstruction:
        curve = as_curve(curve)
        lab = curve_to_lab(curve)
        error = delta_e(lab, target)

        if error >= self.config.acceptable_delta_e:
            raise ReconstructionError(
                f"Target Lab ({target[0]:.2f}, {target[1]:.2f}, {target[2]:.2f}) is unreachable: "
                f"best spectral match is ΔE {error:.3f} away"
            )

        logger.debug(f"Reconstructed curve in {iterations} iterations (ΔE {error:.2e}, converged={converged})")
        return Reconstruction(
            curve=curve,
            lab=(float(lab[0]), float(lab[1]), float(lab[2])),
            delta_e=error,
            iterations=iterations,
            converged=converged,
        )
