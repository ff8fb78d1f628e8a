"""
Mixing Schemas

Pydantic models for mixture search and test-mix output.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from pigment_mixer.core.combination_search import MixResult


class LabColor(BaseModel):
    """Lab color (D65, 10° observer)"""

    L: float = Field(..., description="Lightness (0-100)")
    a: float = Field(..., description="a* (-128 to 127)")
    b: float = Field(..., description="b* (-128 to 127)")

    class Config:
        json_schema_extra = {"example": {"L": 50.0, "a": 0.0, "b": 0.0}}


class PaintPortion(BaseModel):
    """One paint of a mixture"""

    id: str = Field(..., description="Paint id within the brand")
    weight: float = Field(..., description="Mixing weight (0-1)", ge=0.0, le=1.0)
    hex: Optional[str] = Field(None, description="Display color of the paint")


class MixResultSchema(BaseModel):
    """Ranked mixture"""

    rank: int = Field(..., description="1 = best match", ge=1)
    paints: List[PaintPortion] = Field(..., description="Paints and weights", min_length=1, max_length=5)
    hex: str = Field(..., description="Display color of the mixture")
    lab: LabColor
    error: float = Field(..., description="Delta E against the target", ge=0.0)

    @classmethod
    def from_result(cls, result: MixResult, rank: int) -> "MixResultSchema":
        hex_colors = result.hex_colors or (None,) * result.n_paints
        return cls(
            rank=rank,
            paints=[
                PaintPortion(id=pid, weight=min(max(w, 0.0), 1.0), hex=color)
                for pid, w, color in zip(result.paint_ids, result.weights, hex_colors)
            ],
            hex=result.hex,
            lab=LabColor(L=result.lab[0], a=result.lab[1], b=result.lab[2]),
            error=result.error,
        )


class MixResponse(BaseModel):
    """Mixture search response"""

    target_hex: Optional[str] = Field(None, description="Display color of the target")
    target_lab: LabColor
    strategy: str = Field(..., description="Mixing strategy label")
    delta_e_method: str = Field(default="cie76", description="cie76 | cie94 | cie2000")
    results: List[MixResultSchema] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "target_hex": "#777777",
                "target_lab": {"L": 50.0, "a": 0.0, "b": 0.0},
                "strategy": "black + white + 2 colours",
                "delta_e_method": "cie76",
                "results": [],
            }
        }


class TestMixResponse(BaseModel):
    """Simulated result of a user-entered mixture"""

    paints: List[PaintPortion]
    hex: str = Field(..., description="Display color of the mixture")
