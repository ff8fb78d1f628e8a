"""
Mix Simulator Module

Kubelka-Munk single-constant mixing: paint K/S curves combine linearly by
weight, and the mixed K/S is converted back to reflectance.
"""

from typing import Sequence

import numpy as np

from pigment_mixer.core.paint import Paint
from pigment_mixer.core.spectral_model import as_curve, curve_to_lab, ks_to_reflectance, reflectance_to_ks


def simulate_curves(curves: Sequence[Sequence[float]], weights: Sequence[float]) -> np.ndarray:
    """
    Mix reflectance curves with the given weights.

    Weights are used as supplied (no renormalisation). Callers pass
    simplex weights; other inputs are the caller's responsibility.

    Args:
        curves: k reflectance curves, shape (k, 31)
        weights: k weights

    Returns:
        Mixed reflectance curve (31,)

    Raises:
        ValueError: curves and weights differ in length, or no curves given
    """
    curves = np.asarray(curves, dtype=np.float64)
    weights = np.asarray(weights, dtype=np.float64).ravel()

    if curves.ndim != 2 or curves.shape[0] == 0:
        raise ValueError("At least one curve is required")
    if curves.shape[0] != weights.size:
        raise ValueError(f"Got {curves.shape[0]} curves but {weights.size} weights")

    mixed_ks = weights @ reflectance_to_ks(curves)
    return as_curve(ks_to_reflectance(mixed_ks))


def simulate(paints: Sequence[Paint], weights: Sequence[float]) -> np.ndarray:
    """
    Predict the reflectance of a mixture of paints.

    Example:
        >>> curve = simulate([white, ultramarine], [0.8, 0.2])
    """
    if len(paints) != len(weights):
        raise ValueError(f"Got {len(paints)} paints but {len(weights)} weights")
    return simulate_curves([paint.curve for paint in paints], weights)


def mixture_lab(paints: Sequence[Paint], weights: Sequence[float]) -> np.ndarray:
    return curve_to_lab(simulate(paints, weights))


def parts_to_weights(parts: Sequence[float]) -> np.ndarray:
    """
    Normalise mixing parts (e.g. 3 parts white, 1 part blue) to weights summing to 1.

    Raises:
        ValueError: negative or non-finite parts, or parts summing to zero
    """
    parts = np.asarray(parts, dtype=np.float64).ravel()
    if parts.size == 0:
        raise ValueError("No parts given")
    if not np.all(np.isfinite(parts)) or np.any(parts < 0):
        raise ValueError(f"Parts must be finite and non-negative, got {parts.tolist()}")

    total = parts.sum()
    if total <= 0:
        raise ValueError("Parts must not all be zero")
    return parts / total
