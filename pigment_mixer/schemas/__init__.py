"""
Output Schemas Package

Pydantic models for JSON output of mixture searches.
"""

from .mixing import LabColor, MixResponse, MixResultSchema, PaintPortion, TestMixResponse

__all__ = [
    "LabColor",
    "MixResponse",
    "MixResultSchema",
    "PaintPortion",
    "TestMixResponse",
]
