from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from .records import FeatureIndex, WeightedEdge, feature_distance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    position: int
    weight: float
    payload: Any = None


@dataclass(frozen=True)
class PartnerPoint:
    """One collapsed partner of a focal feature, ready for plotting."""

    focal: str
    partner: str
    position: int
    weight: float
    capped_weight: float
    count: float
    category: str


def collapse_windowed_peaks(candidates: Iterable[Candidate], radius: int = 1000) -> list[Candidate]:
    """Keep one max-weight representative per positional cluster.

    Candidates are swept by ascending position. A candidate more than `radius`
    past the current representative closes the cluster; otherwise it replaces
    the representative when its weight is strictly greater, so the first of
    equal weights wins. The span test always uses the current representative.
    """

    ordered = sorted(candidates, key=lambda c: c.position)
    if not ordered:
        return []

    r = max(0, int(radius))
    out: list[Candidate] = []
    cur = ordered[0]
    for nxt in ordered[1:]:
        if nxt.position > cur.position + r:
            out.append(cur)
            cur = nxt
        elif nxt.weight > cur.weight:
            cur = nxt
    out.append(cur)
    return out


def total_counts(edges: Iterable[WeightedEdge], name: str) -> float:
    """Sum of counts over edges that touch `name` on either side."""
    q = str(name).strip().lower()
    return float(
        sum(e.count or 0.0 for e in edges if e.ref.lower() == q or e.target.lower() == q)
    )


def select_partner_points(
    edges: Sequence[WeightedEdge],
    index: FeatureIndex,
    focal: str,
    *,
    min_count: float = 10,
    min_separation: int = 5000,
    exclude_types: Sequence[str] = ("hkRNA",),
    radius: int = 1000,
    y_cap: float = 5000,
) -> list[PartnerPoint]:
    """Collapsed long-range partners of `focal`, weighted by odds ratio.

    Edges are kept when `focal` is their ref, the count passes `min_count`,
    the target type is not excluded, the target is annotated and lies more
    than `min_separation` nt from the focal feature, and the odds ratio is
    positive. Partners are then collapsed by target start within `radius`.
    """

    focal_feature = index.get(focal)
    if focal_feature is None:
        logger.debug("Focal feature %r not annotated; no partners", focal)
        return []

    q = focal_feature.name.lower()
    excluded = set(exclude_types)
    cands: list[Candidate] = []
    for e in edges:
        if e.ref.lower() != q:
            continue
        if (e.count or 0) < min_count:
            continue
        if e.target_type in excluded:
            continue
        target = index.get(e.target)
        if target is None:
            continue
        if feature_distance(focal_feature, target) <= min_separation:
            continue
        weight = float(e.odds_ratio or 0.0)
        if weight <= 0:
            continue
        cands.append(Candidate(position=target.start, weight=weight, payload=(e, target)))

    points = []
    for rep in collapse_windowed_peaks(cands, radius=radius):
        e, target = rep.payload
        points.append(
            PartnerPoint(
                focal=focal_feature.name,
                partner=e.target,
                position=int(rep.position),
                weight=rep.weight,
                capped_weight=min(rep.weight, float(y_cap)),
                count=float(e.count or 0.0),
                category=e.target_type or target.feature_type or "CDS",
            )
        )
    logger.debug("%s: %d candidate partners collapsed to %d", focal_feature.name, len(cands), len(points))
    return points


@dataclass(frozen=True)
class EdgePoint:
    """One edge of the primary feature placed on the genome-wide track."""

    primary: str
    target: str
    position: int
    count: float
    odds_ratio: float | None
    target_type: str | None
    size: float


def _type_key(t: str | None) -> str:
    return (t or "").replace("'", "").strip().lower()


def default_primary(edges: Iterable[WeightedEdge]) -> str | None:
    """Most frequent ref; the first seen wins ties."""
    top = Counter(e.ref for e in edges).most_common(1)
    return top[0][0] if top else None


def select_primary_edges(
    edges: Iterable[WeightedEdge],
    primary: str,
    *,
    min_count: float = 0,
    min_odds_ratio: float = 0,
    types: Sequence[str] = ("5UTR", "CDS", "sRNA"),
) -> list[WeightedEdge]:
    """Edges of `primary` passing the count and odds-ratio floors.

    A missing odds ratio counts as 0. When `types` is non-empty only targets of
    those types (or with no type at all) are kept; types compare without
    apostrophes or case, so "5'UTR" matches "5UTR".
    """

    q = str(primary).strip().lower()
    wanted = {_type_key(t) for t in types}
    out = []
    for e in edges:
        if e.ref.lower() != q:
            continue
        if (e.count or 0) < min_count or (e.odds_ratio or 0.0) < min_odds_ratio:
            continue
        if wanted and e.target_type and _type_key(e.target_type) not in wanted:
            continue
        out.append(e)
    return out


def marker_size(count: float, offset: float | None = None) -> float:
    """Marker radius with area proportional to the count (or count + offset)."""
    base = float(count) if offset is None else max(0.0, float(count) + float(offset))
    return math.sqrt(max(0.0, base)) * 1.4 + 2


def place_edges(
    edges: Sequence[WeightedEdge],
    *,
    count_offset: float | None = None,
    spacing: int = 1000,
) -> list[EdgePoint]:
    """Position edges at their target coordinate, or `spacing` * index without one."""
    return [
        EdgePoint(
            primary=e.ref,
            target=e.target,
            position=int(e.coord_target) if e.coord_target is not None else i * int(spacing),
            count=float(e.count or 0.0),
            odds_ratio=e.odds_ratio,
            target_type=e.target_type,
            size=marker_size(e.count or 0.0, count_offset),
        )
        for i, e in enumerate(edges)
    ]
