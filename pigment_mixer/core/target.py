"""
Target Color

A mixing target given as sRGB hex, a Lab triple or a spectral curve, resolved
to exactly one reflectance curve before the search starts.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from pigment_mixer.core.reconstructor import SpectralReconstructor
from pigment_mixer.core.spectral_model import N_BANDS, as_curve, curve_to_hex, curve_to_lab
from pigment_mixer.utils.color_space import hex_to_lab, lab_to_hex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TargetColor:
    lab: Tuple[float, float, float]
    source: str = "lab"  # "hex" | "lab" | "spectral"
    hex: Optional[str] = None
    curve: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_hex(cls, hex_color: str) -> "TargetColor":
        lab = hex_to_lab(hex_color)
        return cls(lab=tuple(float(v) for v in lab), source="hex", hex=hex_color)

    @classmethod
    def from_lab(cls, L: float, a: float, b: float) -> "TargetColor":
        lab = (float(L), float(a), float(b))
        if not all(np.isfinite(lab)):
            raise ValueError(f"Lab target must be finite, got {lab}")
        return cls(lab=lab, source="lab", hex=lab_to_hex(lab))

    @classmethod
    def from_curve(cls, values: Sequence[float]) -> "TargetColor":
        curve = as_curve(values)
        lab = curve_to_lab(curve)
        return cls(lab=tuple(float(v) for v in lab), source="spectral", hex=curve_to_hex(curve), curve=curve)

    @classmethod
    def parse(cls, value: Union["TargetColor", str, Sequence[float], np.ndarray]) -> "TargetColor":
        """
        Build a target from loosely typed input.

        Accepts an existing TargetColor, a hex string, an "L,a,b" string,
        a 3-sequence (Lab) or a 31-sequence (spectral curve).
        """
        if isinstance(value, TargetColor):
            return value

        if isinstance(value, str):
            text = value.strip()
            if "," in text:
                parts = [p for p in text.split(",") if p.strip()]
                if len(parts) != 3:
                    raise ValueError(f"Lab target must have 3 components: {value!r}")
                return cls.from_lab(*(float(p) for p in parts))
            return cls.from_hex(text)

        values = np.asarray(value, dtype=np.float64).ravel()
        if values.size == 3:
            return cls.from_lab(*values)
        if values.size == N_BANDS:
            return cls.from_curve(values)
        raise ValueError(f"Target must be hex, Lab triple or {N_BANDS}-sample curve; got {values.size} values")

    @property
    def is_spectral(self) -> bool:
        return self.curve is not None

    def resolve(self, reconstructor: Optional[SpectralReconstructor] = None) -> np.ndarray:
        """Return the target's reflectance curve, reconstructing it from Lab when needed."""
        if self.curve is not None:
            return self.curve

        reconstructor = reconstructor or SpectralReconstructor()
        logger.debug(f"Reconstructing spectral curve for Lab {self.lab}")
        return reconstructor.reconstruct(self.lab)
