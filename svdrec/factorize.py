from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Tuple

import torch

from .errors import FactorizationFailure


logger = logging.getLogger(__name__)

_DTYPES = {
    "float32": torch.float32,
    "float64": torch.float64,
}


def resolve_device(device_arg: str) -> torch.device:
    if device_arg == "auto":
        return torch.device("cuda") if torch.cuda.is_available() else torch.device("cpu")
    try:
        device = torch.device(device_arg)
    except RuntimeError as exc:
        raise ValueError(f"Unknown device: {device_arg!r}") from exc
    if device.type == "cuda" and not torch.cuda.is_available():
        raise ValueError("CUDA device requested but torch.cuda is not available")
    return device


def resolve_dtype(dtype_arg: str) -> torch.dtype:
    try:
        return _DTYPES[dtype_arg]
    except KeyError:
        raise ValueError(f"Unsupported dtype: {dtype_arg!r} (expected one of {sorted(_DTYPES)})") from None


class SVDFactors(NamedTuple):
    """
    Thin SVD of an m x n matrix R, with k = min(m, n):
      - U:  (m, k), orthonormal columns
      - S:  (k,),   singular values sorted descending
      - Vt: (k, n), orthonormal rows

    U @ diag(S) @ Vt == R up to rounding.
    """

    U: torch.Tensor
    S: torch.Tensor
    Vt: torch.Tensor


@dataclass(frozen=True)
class LinalgBackend:
    """
    Linear-algebra capability handed to the factorizer.

    Holds where (device) and at which precision (dtype) the decomposition runs.
    float64 keeps reconstruction error around 1e-14 for small rating matrices.
    """

    device: torch.device = field(default_factory=lambda: torch.device("cpu"))
    dtype: torch.dtype = torch.float64

    @classmethod
    def from_names(cls, device: str = "cpu", dtype: str = "float64") -> "LinalgBackend":
        return cls(device=resolve_device(device), dtype=resolve_dtype(dtype))

    def prepare(self, matrix: torch.Tensor) -> torch.Tensor:
        return matrix.to(device=self.device, dtype=self.dtype)

    def svd(self, matrix: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
        # full_matrices=False -> thin factorization, k = min(m, n)
        return torch.linalg.svd(self.prepare(matrix), full_matrices=False)

    def matmul(self, a: torch.Tensor, b: torch.Tensor) -> torch.Tensor:
        return torch.matmul(self.prepare(a), self.prepare(b))


def factorize(R: torch.Tensor, backend: Optional[LinalgBackend] = None) -> SVDFactors:
    """
    Decompose R into (U, S, Vt) with a thin SVD.

    Raises FactorizationFailure instead of returning a partial result when:
      - R is not a non-empty 2-D matrix,
      - R holds NaN or infinite values,
      - the numerical routine does not converge.
    """
    backend = backend if backend is not None else LinalgBackend()

    if R.dim() != 2:
        raise FactorizationFailure(f"Expected a 2-D matrix, got {R.dim()} dimension(s)")
    m, n = R.shape
    if m == 0 or n == 0:
        raise FactorizationFailure(f"Cannot factorize an empty matrix of shape ({m}, {n})")
    if not torch.isfinite(R).all():
        raise FactorizationFailure("Matrix contains NaN or infinite values")

    try:
        U, S, Vt = backend.svd(R)
    except RuntimeError as exc:  # torch.linalg.LinAlgError included
        raise FactorizationFailure(f"SVD did not converge: {exc}") from exc

    if not (torch.isfinite(U).all() and torch.isfinite(S).all() and torch.isfinite(Vt).all()):
        raise FactorizationFailure("SVD produced non-finite factors")

    logger.debug("Factorized %dx%d matrix, k=%d, singular values=%s", m, n, S.shape[0], S.tolist())
    return SVDFactors(U=U, S=S, Vt=Vt)
