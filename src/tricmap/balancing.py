from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IceResult:
    matrix: np.ndarray
    bias: np.ndarray
    n_iter: int
    converged: bool


def _apply_bias(M: np.ndarray, bias: np.ndarray) -> np.ndarray:
    denom = np.outer(bias, bias)
    out = np.zeros_like(M, dtype=np.float64)
    np.divide(M, denom, out=out, where=denom != 0)
    return out


def ice_balance(M: np.ndarray, *, max_iter: int = 250, tol: float = 1e-4) -> IceResult:
    """Iterative correction (ICE) of per-bin visibility bias.

    Each pass divides the matrix by b_i * b_j, scales every bias by its row
    sum over the mean nonzero row sum, renormalises the biases of nonzero rows
    to mean 1 and then measures the RMS change. Bins with no contacts keep a
    bias of 1 and stay zero.

    Hitting `max_iter` is not an error; the last bias estimate is used.

    Args:
        M: (n, n) symmetric, nonnegative matrix
        max_iter: iteration cap (at least 1)
        tol: stop once the RMS bias change drops below this

    Returns:
        IceResult with the balanced matrix M / (b b^T)
    """

    M = np.asarray(M, dtype=np.float64)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise ValueError(f"Expected a square 2D matrix; got shape {M.shape}")

    n = M.shape[0]
    if n <= 1:
        return IceResult(matrix=M.copy(), bias=np.ones(n), n_iter=0, converged=True)

    bias = np.ones(n, dtype=np.float64)
    max_iter = max(1, int(max_iter))
    converged = False
    it = 0

    for it in range(1, max_iter + 1):
        row_sums = _apply_bias(M, bias).sum(axis=1)
        valid = row_sums > 0
        if not valid.any():
            converged = True
            break

        target = row_sums[valid].mean()
        new_bias = bias.copy()
        new_bias[valid] *= row_sums[valid] / target

        avg = new_bias[valid].mean()
        if not np.isfinite(avg) or avg <= 0:
            break
        new_bias[valid] /= avg

        change = np.sqrt(np.mean((new_bias - bias) ** 2))
        bias = new_bias
        if change < tol:
            converged = True
            break

    if not converged:
        logger.debug("ICE stopped at the iteration cap (%d) without converging", max_iter)
    else:
        logger.debug("ICE converged after %d iterations", it)

    return IceResult(matrix=_apply_bias(M, bias), bias=bias, n_iter=it, converged=converged)


def ice_normalize(M: np.ndarray, *, max_iter: int = 250, tol: float = 1e-4) -> np.ndarray:
    return ice_balance(M, max_iter=max_iter, tol=tol).matrix
