"""
Paint Model

Catalogue paints with their measured reflectance curves and mixing roles.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

import numpy as np

from pigment_mixer.core.spectral_model import CurveLike, as_curve, curve_to_hex


class PaintRole(str, Enum):
    """Role a paint plays in mixing strategies"""

    WHITE = "white"
    BLACK = "black"
    GREY = "grey"
    CHROMATIC = "chromatic"


def classify_role(name: str) -> PaintRole:
    """
    Tag a paint by its catalogue name.

    Example:
        >>> classify_role("ivory_black")
        <PaintRole.BLACK: 'black'>
        >>> classify_role("Payne's Grey")
        <PaintRole.GREY: 'grey'>
    """
    normalized = name.lower().replace("_", " ").replace("-", " ")
    if "black" in normalized:
        return PaintRole.BLACK
    if "white" in normalized:
        return PaintRole.WHITE
    if "grey" in normalized or "gray" in normalized:
        return PaintRole.GREY
    return PaintRole.CHROMATIC


@dataclass(frozen=True)
class Paint:
    """
    Immutable catalogue paint.

    Attributes:
        id: catalogue id (unique within a brand)
        curve: measured reflectance, 31 samples 400-700 nm (read-only)
        brand: brand / catalogue table name
        hex: display color; derived from the curve when not stored
        role: mixing role; derived from the id when not given
    """

    id: str
    curve: np.ndarray = field(repr=False, compare=False)
    brand: str = ""
    hex: Optional[str] = None
    role: Optional[Union[PaintRole, str]] = None

    def __post_init__(self):
        object.__setattr__(self, "curve", as_curve(self.curve))
        if self.hex is None:
            object.__setattr__(self, "hex", curve_to_hex(self.curve))
        if self.role is None:
            object.__setattr__(self, "role", classify_role(self.id))
        else:
            object.__setattr__(self, "role", PaintRole(self.role))

    @classmethod
    def from_curve(cls, paint_id: str, curve: CurveLike, brand: str = "", hex_color: Optional[str] = None) -> "Paint":
        return cls(id=paint_id, curve=curve, brand=brand, hex=hex_color)
