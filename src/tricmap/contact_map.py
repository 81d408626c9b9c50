from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

import numpy as np
from scipy.sparse import coo_matrix

from .records import AnnotatedFeature, event_arrays
from .window import CoordinateWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContactMatrix:
    """Square, symmetric bin x bin matrix over one window."""

    values: np.ndarray
    window: CoordinateWindow | None
    bin_size: int
    mode: str = "raw"
    n_events: int = 0

    @classmethod
    def empty(cls, bin_size: int = 1, mode: str = "raw") -> "ContactMatrix":
        """Zero-size matrix with no window, for a feature that was not found."""
        return cls(values=np.zeros((0, 0), dtype=np.float64), window=None, bin_size=max(1, int(bin_size)), mode=mode)

    @property
    def n_bins(self) -> int:
        return int(self.values.shape[0])

    @property
    def total(self) -> float:
        return float(self.values.sum())

    def bin_edges(self) -> np.ndarray:
        """(n_bins, 2) array of [first, last] 5'-offsets covered by each bin."""
        if self.window is None:
            return np.zeros((0, 2), dtype=np.int64)
        lo = self.bin_size * np.arange(self.n_bins, dtype=np.int64)
        hi = np.minimum(lo + self.bin_size - 1, self.window.length - 1)
        return np.stack([lo, hi], axis=1)

    def feature_bins(self, feature: AnnotatedFeature) -> tuple[int, int]:
        """Bin span [first, last+1) occupied by `feature` inside the window."""
        a = int(self.window.to_offset(feature.start))
        b = int(self.window.to_offset(feature.end))
        lo, hi = min(a, b), max(a, b)
        return lo // self.bin_size, hi // self.bin_size + 1

    def with_values(self, values: np.ndarray, *, mode: str) -> "ContactMatrix":
        return ContactMatrix(
            values=values,
            window=self.window,
            bin_size=self.bin_size,
            mode=mode,
            n_events=self.n_events,
        )


def build_contact_matrix(
    events: Iterable,
    window: CoordinateWindow,
    bin_size: int,
) -> ContactMatrix:
    """Bin ligation events whose both ends fall inside `window`.

    Events are undirected: an off-diagonal event adds 1 to both [b1, b2] and
    [b2, b1], a same-bin event adds 1 to the diagonal once. Events with any end
    outside the window contribute nothing.

    Args:
        events: iterable of (c1, c2) pairs or an (n, 2) array
        window: window defining offsets and the in-window test
        bin_size: nucleotides per bin; values below 1 are treated as 1

    Returns:
        ContactMatrix with float64 counts, shape (n_bins, n_bins)
    """

    b = max(1, int(bin_size))
    n = window.n_bins(b)

    c1, c2, _ = event_arrays(events)
    keep = window.contains(c1) & window.contains(c2)
    n_outside = int(keep.size - keep.sum())
    if n_outside:
        logger.debug("Dropped %d events with an end outside %d-%d", n_outside, window.ws, window.we)

    b1 = window.offsets(c1[keep]) // b
    b2 = window.offsets(c2[keep]) // b

    # Mirror only off-diagonal events so self-bin events are counted once.
    off = b1 != b2
    rows = np.concatenate([b1, b2[off]])
    cols = np.concatenate([b2, b1[off]])
    data = np.ones(rows.shape[0], dtype=np.float64)

    M = coo_matrix((data, (rows, cols)), shape=(n, n), dtype=np.float64).toarray()
    return ContactMatrix(values=M, window=window, bin_size=b, mode="raw", n_events=int(keep.sum()))
