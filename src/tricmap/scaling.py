from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

# Reference odds-ratio ticks drawn on partner-map axes.
DEFAULT_TICKS = (0, 5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000)


def symlog(y, linthresh: float = 10.0, base: float = math.e):
    """Sign-preserving log transform, linear for |y| <= linthresh.

    Accepts scalars or arrays; scalars give a Python float back.
    """
    if linthresh <= 0:
        raise ValueError("linthresh must be positive")
    if base <= 1:
        raise ValueError("base must be > 1")

    a = np.asarray(y, dtype=np.float64)
    mag = np.abs(a) / float(linthresh)
    with np.errstate(divide="ignore"):
        logged = 1.0 + np.log(np.where(mag > 1.0, mag, 1.0)) / math.log(base)
    out = np.sign(a) * np.where(mag <= 1.0, mag, logged)
    if out.ndim == 0:
        return float(out)
    return out


@dataclass(frozen=True)
class SymlogScale:
    """One symlog instance shared by axis ticks and data points."""

    linthresh: float = 10.0
    base: float = 10.0

    def __post_init__(self) -> None:
        if self.linthresh <= 0:
            raise ValueError("linthresh must be positive")
        if self.base <= 1:
            raise ValueError("base must be > 1")

    def __call__(self, y):
        return symlog(y, self.linthresh, self.base)

    def ticks(self, values: Sequence[float] = DEFAULT_TICKS, cap: float | None = None) -> list[tuple[float, float]]:
        """(reference value, transformed value) for each tick not above `cap`."""
        vals = [float(v) for v in values if cap is None or v <= cap]
        return list(zip(vals, (float(t) for t in np.atleast_1d(self(vals)))))

    def fraction(self, y, cap: float):
        """Axis position in [0, 1] of `y` on a symlog axis topped at `cap`."""
        top = self(cap)
        if top == 0:
            return np.zeros_like(np.asarray(y, dtype=np.float64))
        return self(np.minimum(y, cap)) / top


def robust_vmax(matrix: np.ndarray, q: float = 95.0) -> float:
    """Colour-scale ceiling: q-th percentile of the positive cells."""
    vals = np.asarray(matrix, dtype=np.float64).ravel()
    vals = vals[vals > 0]
    if vals.size == 0:
        return 1.0
    return float(np.percentile(vals, q))
