"""
Color Delta E Calculation Module

CIE76 / CIE94 / CIEDE2000 color difference, vectorised over leading axes.
NumPy 기반 순수 Python 구현 (colormath 의존성 없음).

Every function accepts Lab arrays of shape (..., 3) that broadcast against
each other. A single pair returns a float, a batch returns an ndarray.

CIE76 is the metric the mixing optimizer descends; the other two are offered
for reporting and ranking.

References:
- Sharma, G., Wu, W., & Dalal, E. N. (2005).
  "The CIEDE2000 color-difference formula: Implementation notes,
   supplementary test data, and mathematical observations."
  Color Research & Application, 30(1), 21-30.
"""

from typing import Callable, Dict, Sequence, Tuple, Union

import numpy as np

LabLike = Union[Tuple[float, float, float], Sequence[float], np.ndarray]
DeltaE = Union[float, np.ndarray]

_POW25_7 = 25.0**7


def _split(lab: LabLike) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    arr = np.asarray(lab, dtype=np.float64)
    if arr.shape[-1:] != (3,):
        raise ValueError(f"Lab values must have a trailing axis of 3, got shape {arr.shape}")
    return arr[..., 0], arr[..., 1], arr[..., 2]


def _finish(value: np.ndarray) -> DeltaE:
    value = np.asarray(value)
    return float(value) if value.ndim == 0 else value


def delta_e_cie1976(lab1: LabLike, lab2: LabLike) -> DeltaE:
    """
    CIE76 색차(ΔE*ab): Euclidean distance in Lab.

    Examples:
        >>> delta_e_cie1976((50, 2.5, -10), (55, 3.5, -9))
        5.196...
        >>> delta_e_cie1976([[50, 0, 0], [60, 0, 0]], (50, 0, 0))
        array([ 0., 10.])
    """
    diff = np.asarray(lab1, dtype=np.float64) - np.asarray(lab2, dtype=np.float64)
    if diff.shape[-1:] != (3,):
        raise ValueError(f"Lab values must have a trailing axis of 3, got shape {diff.shape}")
    return _finish(np.sqrt(np.sum(diff * diff, axis=-1)))


def delta_e_cie1994(
    lab1: LabLike,
    lab2: LabLike,
    kL: float = 1.0,
    kC: float = 1.0,
    kH: float = 1.0,
    K1: float = 0.045,
    K2: float = 0.015,
) -> DeltaE:
    """
    CIE94 색차(ΔE*94).

    Args:
        lab1: reference Lab color(s)
        lab2: sample Lab color(s)
        kL, kC, kH: lightness / chroma / hue weights
        K1, K2: graphic-arts constants (textiles use K1=0.048, K2=0.014)
    """
    L1, a1, b1 = _split(lab1)
    L2, a2, b2 = _split(lab2)

    chroma_ref = np.hypot(a1, b1)
    d_lightness = L1 - L2
    d_chroma = chroma_ref - np.hypot(a2, b2)
    # Hue difference squared can dip below zero by rounding
    d_hue_sq = np.maximum((a1 - a2) ** 2 + (b1 - b2) ** 2 - d_chroma**2, 0.0)

    l_term = d_lightness / kL
    c_term = d_chroma / (kC * (1.0 + K1 * chroma_ref))
    h_term_sq = d_hue_sq / (kH * (1.0 + K2 * chroma_ref)) ** 2

    return _finish(np.sqrt(l_term**2 + c_term**2 + h_term_sq))


def _hue_degrees(b: np.ndarray, a: np.ndarray) -> np.ndarray:
    return np.mod(np.degrees(np.arctan2(b, a)), 360.0)


def delta_e_cie2000(
    lab1: LabLike,
    lab2: LabLike,
    kL: float = 1.0,
    kC: float = 1.0,
    kH: float = 1.0,
) -> DeltaE:
    """
    CIEDE2000 색차(ΔE00), following Sharma et al. (2005).

    Args:
        lab1: first Lab color(s)
        lab2: second Lab color(s)
        kL, kC, kH: lightness / chroma / hue weights (default 1.0)
    """
    L1, a1, b1 = _split(lab1)
    L2, a2, b2 = _split(lab2)

    # a* rescaled by the chroma-dependent G factor
    chroma_mean = (np.hypot(a1, b1) + np.hypot(a2, b2)) / 2.0
    g = 0.5 * (1.0 - np.sqrt(chroma_mean**7 / (chroma_mean**7 + _POW25_7)))
    a1p, a2p = (1.0 + g) * a1, (1.0 + g) * a2

    c1p, c2p = np.hypot(a1p, b1), np.hypot(a2p, b2)
    h1p, h2p = _hue_degrees(b1, a1p), _hue_degrees(b2, a2p)
    achromatic = (c1p * c2p) == 0

    dh = h2p - h1p
    dh = np.where(dh > 180.0, dh - 360.0, np.where(dh < -180.0, dh + 360.0, dh))
    dh = np.where(achromatic, 0.0, dh)

    d_lightness = L2 - L1
    d_chroma = c2p - c1p
    d_hue = 2.0 * np.sqrt(c1p * c2p) * np.sin(np.radians(dh / 2.0))

    lightness_mean = (L1 + L2) / 2.0
    chroma_p_mean = (c1p + c2p) / 2.0

    hue_sum = h1p + h2p
    hue_mean = np.where(
        np.abs(h1p - h2p) <= 180.0,
        hue_sum / 2.0,
        np.where(hue_sum < 360.0, (hue_sum + 360.0) / 2.0, (hue_sum - 360.0) / 2.0),
    )
    hue_mean = np.where(achromatic, hue_sum, hue_mean)

    t = (
        1.0
        - 0.17 * np.cos(np.radians(hue_mean - 30.0))
        + 0.24 * np.cos(np.radians(2.0 * hue_mean))
        + 0.32 * np.cos(np.radians(3.0 * hue_mean + 6.0))
        - 0.20 * np.cos(np.radians(4.0 * hue_mean - 63.0))
    )

    offset_sq = (lightness_mean - 50.0) ** 2
    s_l = 1.0 + 0.015 * offset_sq / np.sqrt(20.0 + offset_sq)
    s_c = 1.0 + 0.045 * chroma_p_mean
    s_h = 1.0 + 0.015 * chroma_p_mean * t

    rotation = 30.0 * np.exp(-(((hue_mean - 275.0) / 25.0) ** 2))
    r_c = 2.0 * np.sqrt(chroma_p_mean**7 / (chroma_p_mean**7 + _POW25_7))
    r_t = -np.sin(np.radians(2.0 * rotation)) * r_c

    l_term = d_lightness / (kL * s_l)
    c_term = d_chroma / (kC * s_c)
    h_term = d_hue / (kH * s_h)

    return _finish(np.sqrt(l_term**2 + c_term**2 + h_term**2 + r_t * c_term * h_term))


DELTA_E_METHODS: Dict[str, Callable[[LabLike, LabLike], DeltaE]] = {
    "cie76": delta_e_cie1976,
    "cie94": delta_e_cie1994,
    "cie2000": delta_e_cie2000,
}


def get_delta_e(method: str = "cie76") -> Callable[[LabLike, LabLike], DeltaE]:
    """Look up a color difference function by name ('cie76', 'cie94', 'cie2000')."""
    try:
        return DELTA_E_METHODS[method.lower()]
    except KeyError:
        raise ValueError(f"Unknown delta E method: {method!r}. Available: {sorted(DELTA_E_METHODS)}")


delta_e = delta_e_cie1976
