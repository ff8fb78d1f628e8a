"""
Mixing Errors

Exception hierarchy for target resolution and mixture search.
"""


class MixingError(Exception):
    """Base exception for paint mixing errors"""

    pass


class ReconstructionError(MixingError):
    """No plausible spectral curve reproduces the target color"""

    pass


class SearchError(MixingError):
    """Mixture search cannot run for the given catalogue and strategy"""

    pass


class InsufficientPaintsError(SearchError):
    """Catalogue lacks a paint role or count the strategy requires"""

    pass


class EmptyCatalogueError(SearchError):
    """No paints were supplied"""

    pass
