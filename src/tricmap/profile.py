from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

import numpy as np
import pandas as pd

from .peaks import Peak, find_local_maxima, prominence_threshold
from .records import event_arrays
from .window import CoordinateWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Profile:
    """Long-range interaction signal along a window (one sample per nt)."""

    window: CoordinateWindow | None
    raw: np.ndarray
    smoothed: np.ndarray
    peaks: np.ndarray
    radius: int

    @classmethod
    def empty(cls, radius: int = 0) -> "Profile":
        z = np.zeros(0, dtype=np.float64)
        return cls(window=None, raw=z, smoothed=z.copy(), peaks=np.zeros(0, dtype=np.int64), radius=int(radius))

    def peak_records(self) -> list[Peak]:
        return [
            Peak(index=int(i), value=float(self.smoothed[i]), position=int(self.window.to_coord(int(i))))
            for i in self.peaks
        ]

    def to_dataframe(self) -> pd.DataFrame:
        offsets = np.arange(self.raw.shape[0], dtype=np.int64)
        is_peak = np.zeros(offsets.shape[0], dtype=bool)
        is_peak[self.peaks] = True
        return pd.DataFrame(
            {
                "offset": offsets,
                "coord": offsets if self.window is None else self.window.to_coord(offsets),
                "count": self.raw,
                "smoothed": self.smoothed,
                "is_peak": is_peak,
            }
        )


def moving_average(x: np.ndarray, k: int) -> np.ndarray:
    """Centred moving average over 2*(k//2)+1 samples.

    Edge samples average only the neighbours that exist (no padding).
    """
    y = np.asarray(x, dtype=np.float64)
    if k <= 1 or y.size == 0:
        return y.copy()
    width = 2 * (int(k) // 2) + 1
    return pd.Series(y).rolling(width, center=True, min_periods=1).mean().to_numpy()


def long_range_profile(
    events: Iterable,
    window: CoordinateWindow,
    radius: int = 5000,
) -> np.ndarray:
    """Per-offset count of partners lying beyond `radius` of the window.

    Only events with exactly one end in the window and the other outside
    [ws - radius, we + radius] are counted, at the in-window end's offset.
    """

    c1, c2, _ = event_arrays(events)
    prof = np.zeros(window.length, dtype=np.float64)
    if c1.size == 0:
        return prof

    for a, b in ((c1, c2), (c2, c1)):
        hit = window.contains(a) & ~window.is_near(b, radius)
        np.add.at(prof, window.offsets(a[hit]), 1.0)

    return prof


def extract_profile(
    events: Iterable,
    window: CoordinateWindow,
    *,
    radius: int = 5000,
    smoothing: int = 3,
    min_distance: int = 3,
    prominence_factor: float = 0.25,
) -> Profile:
    raw = long_range_profile(events, window, radius=radius)
    smoothed = moving_average(raw, smoothing)
    peaks = find_local_maxima(smoothed, min_distance, prominence_threshold(smoothed, prominence_factor))
    logger.debug("Profile %d-%d: %d long-range hits, %d peaks", window.ws, window.we, int(raw.sum()), peaks.size)
    return Profile(window=window, raw=raw, smoothed=smoothed, peaks=peaks, radius=int(radius))
