from __future__ import annotations

import logging
from typing import List, Optional

import torch

from .dataset import MatrixLike, build_interaction_matrix
from .errors import IndexOutOfRange
from .factorize import LinalgBackend, factorize
from .reconstruct import reconstruct
from .recommend import recommend


logger = logging.getLogger(__name__)


def approximate(R: torch.Tensor, backend: Optional[LinalgBackend] = None) -> torch.Tensor:
    """Factorize R and recombine the factors: R -> (U, S, Vt) -> R_hat."""
    backend = backend if backend is not None else LinalgBackend()
    U, S, Vt = factorize(R, backend)
    return reconstruct(U, S, Vt, backend)


def recommend_for_user(
    data: MatrixLike,
    rows: int,
    cols: int,
    user_index: int,
    backend: Optional[LinalgBackend] = None,
    tol: Optional[float] = None,
) -> List[int]:
    """
    Recommend items for one user of a rows x cols interaction matrix.

    `data` is flat row-major or 2-D. Returns every item the user has not
    interacted with, best reconstructed score first (ties by lower item index).
    An empty list means the user has interacted with every item.
    """
    backend = backend if backend is not None else LinalgBackend()
    R = build_interaction_matrix(data, rows, cols, dtype=backend.dtype)

    # Checked before the SVD so a bad index does not pay for a factorization
    if not 0 <= user_index < rows:
        raise IndexOutOfRange(f"User index {user_index} outside [0, {rows})")

    R_hat = approximate(R, backend)
    # R_hat may live on an accelerator; ranking compares against R on the CPU
    return recommend(user_index, R, R_hat.cpu(), tol=tol)
