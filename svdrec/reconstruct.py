from __future__ import annotations

import logging
from typing import Optional

import torch

from .errors import InvalidDimension
from .factorize import LinalgBackend


logger = logging.getLogger(__name__)


def reconstruct(
    U: torch.Tensor,
    S: torch.Tensor,
    Vt: torch.Tensor,
    backend: Optional[LinalgBackend] = None,
) -> torch.Tensor:
    """
    Recombine thin SVD factors into the dense approximation:
      R_hat = U @ diag(S) @ Vt

    With k = min(m, n) this reproduces R to machine precision; no rank is dropped.
    """
    backend = backend if backend is not None else LinalgBackend()

    if U.dim() != 2 or S.dim() != 1 or Vt.dim() != 2:
        raise InvalidDimension(
            f"Expected U (m, k), S (k,), Vt (k, n); got {tuple(U.shape)}, {tuple(S.shape)}, {tuple(Vt.shape)}"
        )
    k = S.shape[0]
    if U.shape[1] != k or Vt.shape[0] != k:
        raise InvalidDimension(
            f"Factor shapes disagree on k: U {tuple(U.shape)}, S {tuple(S.shape)}, Vt {tuple(Vt.shape)}"
        )

    # U * S scales column i of U by S[i], same as U @ diag(S)
    scaled = backend.prepare(U) * backend.prepare(S).unsqueeze(0)
    R_hat = backend.matmul(scaled, Vt)

    logger.debug("Reconstructed %dx%d approximation from k=%d factors", R_hat.shape[0], R_hat.shape[1], k)
    return R_hat
