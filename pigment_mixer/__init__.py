"""
Pigment Mixer

Physically based paint-mixing engine: reconstructs spectral reflectance curves
for target colors, simulates pigment blends with Kubelka-Munk theory and searches
a paint catalogue for the mixtures that best reproduce a target.
"""

__version__ = "0.1.0"
__author__ = "Pigment Mixer Team"
