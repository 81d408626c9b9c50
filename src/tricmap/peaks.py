from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Peak:
    index: int
    value: float
    position: int | None = None


def prominence_threshold(signal: np.ndarray, factor: float) -> float:
    """Minimum prominence as a multiple of the signal's (population) std."""
    y = np.asarray(signal, dtype=np.float64)
    if y.size == 0:
        return 0.0
    return float(max(0.0, factor) * y.std())


def find_local_maxima(signal: np.ndarray, min_distance: int, min_prominence: float) -> np.ndarray:
    """Greedy local-maximum peak calling.

    Candidates are interior points with S[i-1] < S[i] >= S[i+1]. They are taken
    by descending value (ties: lower index first) and suppressed when an already
    accepted peak lies within `min_distance`. A surviving candidate is accepted
    when it rises at least `min_prominence` above the minimum of S over
    [i - min_distance, i + min_distance].

    Returns:
        int64 array of accepted indices, ascending
    """

    y = np.asarray(signal, dtype=np.float64)
    n = y.shape[0]
    if n < 3:
        return np.zeros(0, dtype=np.int64)

    d = max(0, int(min_distance))
    mid = y[1:-1]
    cand = np.flatnonzero((y[:-2] < mid) & (mid >= y[2:])) + 1
    order = cand[np.argsort(-y[cand], kind="stable")]

    taken = np.zeros(n, dtype=bool)
    accepted: list[int] = []
    for i in order:
        lo = max(0, i - d)
        hi = min(n - 1, i + d)
        if taken[lo : hi + 1].any():
            continue
        if y[i] - y[lo : hi + 1].min() >= min_prominence:
            accepted.append(int(i))
            taken[i] = True

    return np.asarray(sorted(accepted), dtype=np.int64)
