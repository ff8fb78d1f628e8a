"""
Spectral Model Module

Stateless conversions between reflectance, Kubelka-Munk K/S and CIE Lab.

All colorimetry uses one fixed reference: the CIE 1964 10° standard observer
under illuminant D65, sampled at 31 bands from 400 nm to 700 nm. The weighting
matrix is normalised so that a perfect reflector has Y = 1, and Lab is taken
relative to that reflector.
"""

from typing import Sequence, Union

import numpy as np
from colour import MSDS_CMFS, SDS_ILLUMINANTS, SpectralShape

from pigment_mixer.utils.color_delta import delta_e_cie1976
from pigment_mixer.utils.color_space import lab_to_hex, lab_to_xyz, xyz_to_lab

OBSERVER = "CIE 1964 10 Degree Standard Observer"
ILLUMINANT = "D65"

WAVELENGTHS = np.arange(400, 701, 10)
N_BANDS = len(WAVELENGTHS)

# Floor applied before K/S conversion; K/S is unbounded as R → 0
REFLECTANCE_FLOOR = 1e-6

_SHAPE = SpectralShape(400, 700, 10)
_CMFS = MSDS_CMFS[OBSERVER].copy().align(_SHAPE).values  # 31×3 (x̄, ȳ, z̄)
_SPD = SDS_ILLUMINANTS[ILLUMINANT].copy().align(_SHAPE).values  # 31
_WEIGHTED = (_CMFS * _SPD[:, None]).T  # 3×31

T_MATRIX = np.ascontiguousarray(_WEIGHTED / _WEIGHTED[1].sum(), dtype=np.float64)
T_MATRIX.setflags(write=False)

WHITE_POINT_XYZ = np.ones(N_BANDS) @ T_MATRIX.T
WHITE_POINT_XYZ.setflags(write=False)

CurveLike = Union[Sequence[float], np.ndarray]


def as_curve(values: CurveLike) -> np.ndarray:
    """
    Validate and normalise a spectral reflectance curve.

    Returns a read-only float64 copy with 31 samples clamped to [0, 1].

    Raises:
        ValueError: wrong sample count or non-finite samples
    """
    curve = np.array(values, dtype=np.float64).ravel()
    if curve.size != N_BANDS:
        raise ValueError(f"Spectral curve must have {N_BANDS} samples (400-700 nm), got {curve.size}")
    if not np.all(np.isfinite(curve)):
        raise ValueError("Spectral curve contains non-finite values")

    curve = np.clip(curve, 0.0, 1.0)
    curve.setflags(write=False)
    return curve


def reflectance_to_ks(reflectance: CurveLike) -> np.ndarray:
    """
    Reflectance R → Kubelka-Munk K/S, per band.

    Formula: K/S = (1 - R)² / (2R), with R floored at REFLECTANCE_FLOOR.
    """
    r = np.clip(np.asarray(reflectance, dtype=np.float64), REFLECTANCE_FLOOR, 1.0)
    return (1.0 - r) ** 2 / (2.0 * r)


def ks_to_reflectance(ks: CurveLike) -> np.ndarray:
    """
    Kubelka-Munk K/S → reflectance R, per band.

    Formula: R = 1 + K/S - √(K/S² + 2·K/S), evaluated as
    1 / (1 + K/S + √(K/S² + 2·K/S)) to avoid cancellation at large K/S.
    """
    ks = np.maximum(np.asarray(ks, dtype=np.float64), 0.0)
    r = 1.0 / (1.0 + ks + np.sqrt(ks * ks + 2.0 * ks))
    return np.clip(r, 0.0, 1.0)


def ks_to_reflectance_derivative(ks: CurveLike) -> np.ndarray:
    """dR / d(K/S) of ks_to_reflectance."""
    ks = np.maximum(np.asarray(ks, dtype=np.float64), 1e-12)
    root = np.sqrt(ks * ks + 2.0 * ks)
    r = 1.0 / (1.0 + ks + root)
    return -r * r * (1.0 + (ks + 1.0) / root)


def curve_to_xyz(curve: CurveLike) -> np.ndarray:
    """Reflectance curve(s) of shape (..., 31) → relative XYZ (..., 3)."""
    return np.clip(np.asarray(curve, dtype=np.float64), 0.0, 1.0) @ T_MATRIX.T


def curve_to_lab(curve: CurveLike) -> np.ndarray:
    """
    Reflectance curve(s) → CIE Lab under the fixed illuminant/observer.

    This is the single definition of the color a curve produces.
    """
    return xyz_to_lab(curve_to_xyz(curve), WHITE_POINT_XYZ)


def lab_to_target_xyz(lab: Sequence[float]) -> np.ndarray:
    """Lab → XYZ relative to the spectral white point (inverse of the Lab step of curve_to_lab)."""
    return lab_to_xyz(lab, WHITE_POINT_XYZ)


def delta_e(lab1: Sequence[float], lab2: Sequence[float]) -> float:
    """Perceptual error between two Lab colors (CIE76)."""
    return delta_e_cie1976(lab1, lab2)


def curve_to_hex(curve: CurveLike) -> str:
    """Display color (sRGB hex) of a reflectance curve."""
    return lab_to_hex(curve_to_lab(curve))
