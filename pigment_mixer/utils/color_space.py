"""
Color Space Conversion Utilities

sRGB hex ↔ linear RGB ↔ CIE XYZ ↔ CIE L*a*b* conversions.

XYZ values are relative (white Y = 1). Lab conversions take the reference white
explicitly so the same code serves the sRGB (D65, 2°) white and the spectral
white of the mixing model.
"""

import re
from typing import Tuple, Union

import numpy as np
from colour.models import RGB_COLOURSPACE_sRGB

ArrayLike = Union[np.ndarray, Tuple[float, ...], list]

CIE_EPSILON = 216.0 / 24389.0
CIE_KAPPA = 24389.0 / 27.0

_RGB_TO_XYZ = np.asarray(RGB_COLOURSPACE_sRGB.matrix_RGB_to_XYZ, dtype=np.float64)
_XYZ_TO_RGB = np.linalg.inv(_RGB_TO_XYZ)

# XYZ of sRGB (1, 1, 1)
SRGB_WHITE_XYZ = _RGB_TO_XYZ @ np.ones(3)

_HEX_PATTERN = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})$")


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """
    Parse '#RRGGBB', 'RRGGBB' or '#RGB' into an (R, G, B) tuple of 0~255 ints.

    Example:
        >>> hex_to_rgb("#ff8000")
        (255, 128, 0)
    """
    match = _HEX_PATTERN.match(hex_color.strip()) if isinstance(hex_color, str) else None
    if not match:
        raise ValueError(f"Invalid hex color: {hex_color!r}")

    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)

    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def rgb_to_hex(rgb: ArrayLike) -> str:
    r, g, b = (int(np.clip(round(float(v)), 0, 255)) for v in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def srgb_to_linear(arr: ArrayLike) -> np.ndarray:
    """Companded sRGB (0~1) → linear RGB (0~1)."""
    arr = np.clip(np.asarray(arr, dtype=np.float64), 0.0, 1.0)
    return np.where(arr <= 0.04045, arr / 12.92, ((arr + 0.055) / 1.055) ** 2.4)


def linear_to_srgb(arr: ArrayLike) -> np.ndarray:
    """Linear RGB (0~1) → companded sRGB (0~1)."""
    arr = np.clip(np.asarray(arr, dtype=np.float64), 0.0, 1.0)
    return np.where(arr <= 0.0031308, arr * 12.92, 1.055 * np.power(arr, 1.0 / 2.4) - 0.055)


def _lab_f(t: np.ndarray) -> np.ndarray:
    return np.where(t > CIE_EPSILON, np.cbrt(np.maximum(t, CIE_EPSILON)), (CIE_KAPPA * t + 16.0) / 116.0)


def _lab_f_prime(t: np.ndarray) -> np.ndarray:
    cube = np.cbrt(np.maximum(t, CIE_EPSILON))
    return np.where(t > CIE_EPSILON, 1.0 / (3.0 * cube * cube), CIE_KAPPA / 116.0)


def xyz_to_lab(xyz: ArrayLike, white: ArrayLike = SRGB_WHITE_XYZ) -> np.ndarray:
    """
    XYZ → CIE L*a*b* relative to the given reference white.

    Args:
        xyz: array of shape (..., 3)
        white: reference white XYZ (3,)

    Returns:
        Lab array of shape (..., 3)
    """
    t = np.asarray(xyz, dtype=np.float64) / np.asarray(white, dtype=np.float64)
    f = _lab_f(t)

    L = 116.0 * f[..., 1] - 16.0
    a = 500.0 * (f[..., 0] - f[..., 1])
    b = 200.0 * (f[..., 1] - f[..., 2])

    return np.stack([L, a, b], axis=-1)


def lab_to_xyz(lab: ArrayLike, white: ArrayLike = SRGB_WHITE_XYZ) -> np.ndarray:
    """Inverse of xyz_to_lab."""
    lab = np.asarray(lab, dtype=np.float64)
    L, a, b = lab[..., 0], lab[..., 1], lab[..., 2]

    fy = (L + 16.0) / 116.0
    fx = fy + a / 500.0
    fz = fy - b / 200.0
    f = np.stack([fx, fy, fz], axis=-1)

    cubed = f**3
    t = np.where(cubed > CIE_EPSILON, cubed, (116.0 * f - 16.0) / CIE_KAPPA)

    return t * np.asarray(white, dtype=np.float64)


def xyz_to_lab_jacobian(xyz: ArrayLike, white: ArrayLike = SRGB_WHITE_XYZ) -> np.ndarray:
    """
    Partial derivatives d(L, a, b) / d(X, Y, Z).

    Args:
        xyz: array of shape (N, 3)
        white: reference white XYZ (3,)

    Returns:
        Jacobians of shape (N, 3, 3), rows = (L, a, b), columns = (X, Y, Z)
    """
    white = np.asarray(white, dtype=np.float64)
    xyz = np.atleast_2d(np.asarray(xyz, dtype=np.float64))
    fp = _lab_f_prime(xyz / white) / white

    jac = np.zeros((xyz.shape[0], 3, 3))
    jac[:, 0, 1] = 116.0 * fp[:, 1]
    jac[:, 1, 0] = 500.0 * fp[:, 0]
    jac[:, 1, 1] = -500.0 * fp[:, 1]
    jac[:, 2, 1] = 200.0 * fp[:, 1]
    jac[:, 2, 2] = -200.0 * fp[:, 2]
    return jac


def hex_to_lab(hex_color: str) -> np.ndarray:
    """
    sRGB hex → CIE Lab (D65 white).

    Example:
        >>> hex_to_lab("#ffffff")
        array([100.,   0.,   0.])
    """
    rgb = np.asarray(hex_to_rgb(hex_color), dtype=np.float64) / 255.0
    xyz = _RGB_TO_XYZ @ srgb_to_linear(rgb)
    return xyz_to_lab(xyz, SRGB_WHITE_XYZ)


def lab_to_hex(lab: ArrayLike) -> str:
    """CIE Lab (D65 white) → sRGB hex, out-of-gamut channels clipped."""
    xyz = lab_to_xyz(lab, SRGB_WHITE_XYZ)
    srgb = linear_to_srgb(_XYZ_TO_RGB @ xyz)
    return rgb_to_hex(srgb * 255.0)


def validate_standard_lab(L: float, a: float, b: float, tolerance: float = 5.0) -> bool:
    """
    Validate if Lab values are in standard range

    Args:
        L: L* value
        a: a* value
        b: b* value
        tolerance: Allow slight out-of-range values (default: 5.0)

    Returns:
        True if values are valid

    Example:
        >>> validate_standard_lab(72.2, 9.3, -5.2)
        True
        >>> validate_standard_lab(182.5, 127.5, 137.5)  # 0~255 scale
        False
    """
    if not (-tolerance <= L <= 100 + tolerance):
        return False
    if not (-128 - tolerance <= a <= 127 + tolerance):
        return False
    if not (-128 - tolerance <= b <= 127 + tolerance):
        return False
    return True
