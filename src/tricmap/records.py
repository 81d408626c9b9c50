from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, NamedTuple

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenomicInterval:
    """Closed genomic span on one strand."""

    start: int
    end: int
    strand: str = "+"
    chrom: str | None = None

    def __post_init__(self) -> None:
        if int(self.start) > int(self.end):
            raise ValueError(f"Invalid interval with start>end: {self.start}>{self.end}")
        # Anything that is not explicitly '-' is read as forward strand.
        object.__setattr__(self, "strand", "-" if str(self.strand).strip() == "-" else "+")

    @property
    def length(self) -> int:
        return int(self.end) - int(self.start) + 1


@dataclass(frozen=True)
class AnnotatedFeature:
    name: str
    interval: GenomicInterval
    feature_type: str = "CDS"

    @classmethod
    def from_bounds(
        cls,
        name: str,
        start: int,
        end: int,
        *,
        strand: str = "+",
        chrom: str | None = None,
        feature_type: str | None = None,
    ) -> "AnnotatedFeature":
        return cls(
            name=str(name).strip(),
            interval=GenomicInterval(int(start), int(end), strand=strand, chrom=chrom),
            feature_type=feature_type or "CDS",
        )

    @property
    def start(self) -> int:
        return self.interval.start

    @property
    def end(self) -> int:
        return self.interval.end

    @property
    def strand(self) -> str:
        return self.interval.strand

    @property
    def chrom(self) -> str | None:
        return self.interval.chrom


class InteractionEvent(NamedTuple):
    """One chimeric read: an unordered pair of ligated coordinates."""

    c1: int
    c2: int


@dataclass(frozen=True)
class WeightedEdge:
    """Feature-to-feature aggregate computed upstream (not a raw event)."""

    ref: str
    target: str
    count: float = 0.0
    odds_ratio: float | None = None
    ref_type: str | None = None
    target_type: str | None = None
    coord_ref: int | None = None
    coord_target: int | None = None


@dataclass
class FeatureIndex:
    """Case-insensitive name lookup over annotated features.

    Later duplicates of a name replace earlier ones, as in a plain dict index.
    """

    features: list[AnnotatedFeature] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._by_name = {f.name.lower(): f for f in self.features}

    @classmethod
    def build(cls, features: Iterable[AnnotatedFeature]) -> "FeatureIndex":
        return cls(list(features))

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._by_name

    def get(self, name: str, *, partial: bool = False) -> AnnotatedFeature | None:
        """Return the feature called `name`, or None when it is not annotated.

        With `partial=True` a failed exact lookup falls back to the first
        feature (in input order) whose name contains the query.
        """
        q = str(name).strip().lower()
        if not q:
            return None
        hit = self._by_name.get(q)
        if hit is not None or not partial:
            return hit
        for f in self.features:
            if q in f.name.lower():
                return f
        return None


def feature_distance(a: AnnotatedFeature | None, b: AnnotatedFeature | None) -> float:
    """Smallest endpoint-to-endpoint distance between two features."""
    if a is None or b is None:
        return float("inf")
    return float(
        min(
            abs(a.start - b.end),
            abs(a.end - b.start),
            abs(a.start - b.start),
            abs(a.end - b.end),
        )
    )


_INT64_LIMIT = float(2**63)


def _representable(x: float) -> bool:
    return math.isfinite(x) and abs(x) < _INT64_LIMIT


def event_arrays(events: Iterable) -> tuple[np.ndarray, np.ndarray, int]:
    """Coerce pair-like events into two int64 coordinate arrays.

    Each event is checked on its own; events that are not a pair of finite
    numbers within the int64 range are dropped and counted rather than
    failing the whole batch.

    Returns:
        (c1, c2, n_dropped)
    """
    if isinstance(events, np.ndarray) and events.ndim == 2 and events.shape[1] == 2:
        if np.issubdtype(events.dtype, np.signedinteger):
            arr = events.astype(np.int64, copy=False)
            return arr[:, 0].copy(), arr[:, 1].copy(), 0
        arr = events.astype(np.float64, copy=False)
        with np.errstate(invalid="ignore"):
            ok = (np.isfinite(arr) & (np.abs(arr) < _INT64_LIMIT)).all(axis=1)
        arr = arr[ok]
        return arr[:, 0].astype(np.int64), arr[:, 1].astype(np.int64), int((~ok).sum())

    c1: list[int] = []
    c2: list[int] = []
    dropped = 0
    for ev in events:
        try:
            a, b = ev
            a = float(a)
            b = float(b)
        except (TypeError, ValueError, OverflowError):
            dropped += 1
            continue
        if not (_representable(a) and _representable(b)):
            dropped += 1
            continue
        c1.append(int(a))
        c2.append(int(b))

    if dropped:
        logger.debug("Dropped %d malformed interaction events", dropped)
    return np.asarray(c1, dtype=np.int64), np.asarray(c2, dtype=np.int64), dropped
