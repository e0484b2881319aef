from __future__ import annotations

from typing import List

import torch

from .errors import InvalidDimension


def _check_same_shape(R: torch.Tensor, R_hat: torch.Tensor) -> None:
    if R.shape != R_hat.shape:
        raise InvalidDimension(f"Shape mismatch: {tuple(R.shape)} vs {tuple(R_hat.shape)}")


def max_abs_error(R: torch.Tensor, R_hat: torch.Tensor) -> float:
    # ||R - R_hat||_inf taken element-wise; ~1e-14 for a full-rank float64 reconstruction
    _check_same_shape(R, R_hat)
    return (R.to(R_hat.dtype) - R_hat).abs().max().item()


def observed_rmse(R: torch.Tensor, R_hat: torch.Tensor) -> float:
    # RMSE over the observed (non-zero) entries only:
    #    RMSE = sqrt( (1 / |Ω|) * Σ_{(i,j) ∈ Ω} (R_ij - R_hat_ij)^2 )
    # with Ω = {(i, j) : R_ij != 0}
    _check_same_shape(R, R_hat)
    mask = R != 0
    if not mask.any():
        return 0.0
    diff = R.to(R_hat.dtype)[mask] - R_hat[mask]
    mse = torch.mean(diff ** 2).item()
    return mse ** 0.5


def format_matrix(matrix: torch.Tensor, precision: int = 4) -> str:
    """Bracketed, column-aligned rendering of a 2-D tensor for console output."""
    rows: List[List[str]] = [
        [f"{value:.{precision}f}" for value in row] for row in matrix.tolist()
    ]
    if not rows or not rows[0]:
        return "[]"
    width = max(len(cell) for row in rows for cell in row)
    lines = ["[" + "  ".join(cell.rjust(width) for cell in row) + "]" for row in rows]
    return "\n".join(lines)
