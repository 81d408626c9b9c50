from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .records import AnnotatedFeature


@dataclass(frozen=True)
class CoordinateWindow:
    """Feature-centred, strand-aware genomic window.

    Offsets run 5'->3' regardless of strand: 0 is `ws` on '+' and `we` on '-'.
    Both ends are inclusive.
    """

    ws: int
    we: int
    strand: str = "+"
    chrom: str | None = None

    @classmethod
    def around(
        cls,
        start: int,
        end: int,
        flank: int = 0,
        *,
        strand: str = "+",
        chrom: str | None = None,
    ) -> "CoordinateWindow":
        flank = max(0, int(flank))
        ws = max(1, int(start) - flank)
        we = int(end) + flank
        return cls(ws=ws, we=we, strand="-" if strand == "-" else "+", chrom=chrom)

    @classmethod
    def for_feature(cls, feature: AnnotatedFeature, flank: int = 0) -> "CoordinateWindow":
        return cls.around(feature.start, feature.end, flank, strand=feature.strand, chrom=feature.chrom)

    @property
    def length(self) -> int:
        return self.we - self.ws + 1

    @property
    def is_reverse(self) -> bool:
        return self.strand == "-"

    def contains(self, coord):
        """In-window test; works on scalars and numpy arrays."""
        return (coord >= self.ws) & (coord <= self.we)

    def is_near(self, coord, radius: int):
        r = max(0, int(radius))
        return (coord >= self.ws - r) & (coord <= self.we + r)

    def to_offset(self, coord):
        if self.is_reverse:
            return self.we - coord
        return coord - self.ws

    def to_coord(self, offset):
        if self.is_reverse:
            return self.we - offset
        return self.ws + offset

    def offsets(self, coords: np.ndarray) -> np.ndarray:
        return np.asarray(self.to_offset(np.asarray(coords, dtype=np.int64)), dtype=np.int64)

    def n_bins(self, bin_size: int) -> int:
        b = max(1, int(bin_size))
        return max(1, -(-self.length // b))
