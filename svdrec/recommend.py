from __future__ import annotations

import logging
from typing import List, Optional

import torch

from .errors import IndexOutOfRange, InvalidDimension


logger = logging.getLogger(__name__)

# Units of roundoff allowed per dimension before two scores stop being a tie.
TIE_ULPS = 16


def candidate_items(user: int, R: torch.Tensor) -> List[int]:
    """Items the user has no recorded interaction with (stored value exactly 0)."""
    return torch.nonzero(R[user] == 0, as_tuple=False).flatten().tolist()


def tie_tolerance(R_hat: torch.Tensor) -> float:
    """
    Largest score gap still treated as a tie:
      tol = TIE_ULPS * eps(dtype) * max(m, n) * max|R_hat|

    Reconstruction error of an SVD grows with the float precision, the matrix
    size and the magnitude of the values, so the tolerance follows all three.
    """
    if not R_hat.is_floating_point() or R_hat.numel() == 0:
        return 0.0
    scale = R_hat.abs().max().item()
    return TIE_ULPS * torch.finfo(R_hat.dtype).eps * max(R_hat.shape) * scale


def _rank(candidates: List[int], scores: List[float], tol: float) -> List[int]:
    ordered = sorted(candidates, key=lambda j: (-scores[j], j))
    ranked: List[int] = []
    start = 0
    while start < len(ordered):
        # Everything within tol of the group's best score is one tie group
        head = scores[ordered[start]]
        end = start + 1
        while end < len(ordered) and head - scores[ordered[end]] <= tol:
            end += 1
        ranked.extend(sorted(ordered[start:end]))
        start = end
    return ranked


def recommend(
    user: int,
    R: torch.Tensor,
    R_hat: torch.Tensor,
    tol: Optional[float] = None,
) -> List[int]:
    """
    Rank the items `user` has not interacted with by their reconstructed score.

    - candidates: every item j with R[user, j] == 0
    - order: R_hat[user, j] descending, ties by j ascending
    - scores within `tol` of a group's best score are ties; None derives the
      tolerance from R_hat (see tie_tolerance), 0.0 compares exactly

    The full candidate list is returned; slice it for a top-N.
    """
    if R.dim() != 2 or R_hat.dim() != 2:
        raise InvalidDimension(f"Expected 2-D matrices, got {R.dim()}-D and {R_hat.dim()}-D")
    if R.shape != R_hat.shape:
        raise InvalidDimension(f"Shape mismatch: original {tuple(R.shape)} vs approximation {tuple(R_hat.shape)}")

    num_users = R.shape[0]
    if not 0 <= user < num_users:
        raise IndexOutOfRange(f"User index {user} outside [0, {num_users})")

    if tol is None:
        tol = tie_tolerance(R_hat)

    candidates = candidate_items(user, R)
    ranked = _rank(candidates, R_hat[user].tolist(), tol)

    logger.debug("User %d: %d candidate item(s) ranked, tie tolerance %.3e", user, len(ranked), tol)
    return ranked
