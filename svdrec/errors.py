class RecommenderError(Exception):
    """Base class for every failure raised by svdrec."""


class InvalidDimension(RecommenderError, ValueError):
    """Matrix shape does not match the declared rows/cols, or rows/cols <= 0."""


class InvalidInteraction(RecommenderError, ValueError):
    """Interaction values that cannot be used (negative or non-numeric)."""


class FactorizationFailure(RecommenderError, RuntimeError):
    """SVD did not converge or was handed empty / non-finite input."""


class IndexOutOfRange(RecommenderError, IndexError):
    """User index outside [0, rows)."""
