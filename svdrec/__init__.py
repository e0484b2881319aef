from .dataset import InteractionMatrix, build_interaction_matrix
from .errors import (
    FactorizationFailure,
    IndexOutOfRange,
    InvalidDimension,
    InvalidInteraction,
    RecommenderError,
)
from .factorize import LinalgBackend, SVDFactors, factorize
from .pipeline import approximate, recommend_for_user
from .reconstruct import reconstruct
from .recommend import recommend

__all__ = [
    "FactorizationFailure",
    "IndexOutOfRange",
    "InteractionMatrix",
    "InvalidDimension",
    "InvalidInteraction",
    "LinalgBackend",
    "RecommenderError",
    "SVDFactors",
    "approximate",
    "build_interaction_matrix",
    "factorize",
    "reconstruct",
    "recommend",
    "recommend_for_user",
]
