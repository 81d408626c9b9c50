from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from .balancing import ice_balance
from .collapse import (
    EdgePoint,
    PartnerPoint,
    default_primary,
    place_edges,
    select_partner_points,
    select_primary_edges,
    total_counts,
)
from .config import FoldMapConfig, GlobalMapConfig, PartnerMapConfig
from .contact_map import ContactMatrix, build_contact_matrix
from .ingest import read_annotations, read_edges, read_interaction_files
from .profile import Profile, extract_profile
from .records import AnnotatedFeature, FeatureIndex, WeightedEdge, event_arrays
from .reporting import ensure_dir, write_json, write_matrix, write_table
from .scaling import DEFAULT_TICKS, SymlogScale, robust_vmax
from .window import CoordinateWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FoldMap:
    """Everything the fold-map view needs for one feature."""

    query: str
    config: FoldMapConfig
    feature: AnnotatedFeature | None = None
    window: CoordinateWindow | None = None
    raw: ContactMatrix | None = None
    balanced: ContactMatrix | None = None
    profile: Profile | None = None

    @property
    def found(self) -> bool:
        return self.feature is not None

    @property
    def matrix(self) -> ContactMatrix | None:
        if self.config.normalization == "ice" and self.balanced is not None:
            return self.balanced
        return self.raw

    @classmethod
    def empty(cls, query: str, config: FoldMapConfig) -> "FoldMap":
        """Not-found result: no feature or window, zero-size matrix and profile."""
        raw = ContactMatrix.empty(config.bin_size)
        balanced = raw.with_values(raw.values, mode="ice") if config.normalization == "ice" else None
        return cls(query=query, config=config, raw=raw, balanced=balanced, profile=Profile.empty(config.long_range_radius))


def fold_map(
    features: Iterable[AnnotatedFeature] | FeatureIndex,
    events: Iterable,
    name: str,
    config: FoldMapConfig = FoldMapConfig(),
) -> FoldMap:
    """Contact matrix (raw, optionally ICE) and long-range profile for `name`.

    An unknown feature name gives an empty FoldMap (`found` is False).
    """

    cfg = config.clamped()
    index = features if isinstance(features, FeatureIndex) else FeatureIndex.build(features)
    feature = index.get(name, partial=True)
    if feature is None:
        logger.warning("Feature %r not found among %d annotations", name, len(index))
        return FoldMap.empty(name, cfg)

    # Read the events once; both the matrix and the profile consume them.
    c1, c2, n_dropped = event_arrays(events)
    if n_dropped:
        logger.info("Dropped %d malformed interaction events", n_dropped)
    pairs = np.stack([c1, c2], axis=1)

    window = CoordinateWindow.for_feature(feature, cfg.flank)
    raw = build_contact_matrix(pairs, window, cfg.bin_size)

    balanced = None
    if cfg.normalization == "ice":
        res = ice_balance(raw.values, max_iter=cfg.ice_max_iter, tol=cfg.ice_tol)
        balanced = raw.with_values(res.matrix, mode="ice")
        logger.info("ICE for %s: %d iterations (converged=%s)", feature.name, res.n_iter, res.converged)

    profile = extract_profile(
        pairs,
        window,
        radius=cfg.long_range_radius,
        smoothing=cfg.smoothing_window,
        min_distance=cfg.peak_min_distance,
        prominence_factor=cfg.peak_prominence_factor,
    )
    logger.info(
        "%s window %d-%d (%s): %d bins, %d binned events, %d profile peaks",
        feature.name,
        window.ws,
        window.we,
        window.strand,
        raw.n_bins,
        raw.n_events,
        profile.peaks.size,
    )
    return FoldMap(query=name, config=cfg, feature=feature, window=window, raw=raw, balanced=balanced, profile=profile)


@dataclass(frozen=True)
class PartnerMap:
    config: PartnerMapConfig
    scale: SymlogScale
    points: dict[str, list[PartnerPoint]] = field(default_factory=dict)
    totals: dict[str, float] = field(default_factory=dict)
    missing: tuple[str, ...] = ()

    def to_dataframe(self) -> pd.DataFrame:
        rows = []
        for focal, pts in self.points.items():
            for p in pts:
                rows.append(
                    {
                        "focal": focal,
                        "partner": p.partner,
                        "position": p.position,
                        "odds_ratio": p.weight,
                        "odds_ratio_capped": p.capped_weight,
                        "y_symlog": self.scale(p.capped_weight),
                        "y_fraction": self.scale.fraction(p.capped_weight, self.config.y_cap),
                        "count": p.count,
                        "category": p.category,
                    }
                )
        cols = [
            "focal",
            "partner",
            "position",
            "odds_ratio",
            "odds_ratio_capped",
            "y_symlog",
            "y_fraction",
            "count",
            "category",
        ]
        return pd.DataFrame(rows, columns=cols)


def partner_map(
    features: Iterable[AnnotatedFeature] | FeatureIndex,
    edges: Iterable[WeightedEdge],
    names: Sequence[str],
    config: PartnerMapConfig = PartnerMapConfig(),
) -> PartnerMap:
    """Collapsed long-range partners for each focal name."""

    edges = list(edges)
    cfg = config.clamped()
    index = features if isinstance(features, FeatureIndex) else FeatureIndex.build(features)
    scale = SymlogScale(cfg.symlog_linthresh, cfg.symlog_base)

    points: dict[str, list[PartnerPoint]] = {}
    totals: dict[str, float] = {}
    missing: list[str] = []
    for name in names:
        if name not in index:
            logger.warning("Feature %r not found; reporting no partners", name)
            missing.append(name)
            points[name] = []
            totals[name] = 0.0
            continue
        points[name] = select_partner_points(
            edges,
            index,
            name,
            min_count=cfg.min_count,
            min_separation=cfg.min_separation,
            exclude_types=cfg.exclude_types,
            radius=cfg.cluster_radius,
            y_cap=cfg.y_cap,
        )
        totals[name] = total_counts(edges, name)
        logger.info("%s: %d collapsed partners, %g total counts", name, len(points[name]), totals[name])

    return PartnerMap(config=cfg, scale=scale, points=points, totals=totals, missing=tuple(missing))


@dataclass(frozen=True)
class GlobalMap:
    """All filtered edges of one primary feature across the genome."""

    primary: str | None
    config: GlobalMapConfig
    points: list[EdgePoint] = field(default_factory=list)
    primaries: tuple[str, ...] = ()

    def to_dataframe(self) -> pd.DataFrame:
        cols = ["primary", "target", "position", "count", "odds_ratio", "target_type", "size"]
        return pd.DataFrame([[getattr(p, c) for c in cols] for p in self.points], columns=cols)


def global_map(
    edges: Iterable[WeightedEdge],
    primary: str | None = None,
    config: GlobalMapConfig = GlobalMapConfig(),
) -> GlobalMap:
    """Edges of `primary` (default: the most frequent ref) placed by target coordinate."""

    edges = list(edges)
    cfg = config.clamped()
    primaries = tuple(sorted({e.ref for e in edges}))
    if primary is None:
        primary = default_primary(edges)
        if primary is None:
            logger.warning("No edges; global map is empty")
            return GlobalMap(primary=None, config=cfg)

    kept = select_primary_edges(
        edges,
        primary,
        min_count=cfg.min_count,
        min_odds_ratio=cfg.min_odds_ratio,
        types=cfg.highlight_types,
    )
    if not kept:
        logger.warning("No edges for %r pass the filters", primary)
    points = place_edges(kept, count_offset=cfg.count_offset)
    logger.info("%s: %d of %d edges shown", primary, len(points), len(edges))
    return GlobalMap(primary=primary, config=cfg, points=points, primaries=primaries)


@dataclass(frozen=True)
class FoldMapOutputs:
    out_dir: Path
    raw_path: Path | None
    ice_path: Path | None
    profile_path: Path | None
    peaks_path: Path | None
    meta_path: Path


def run_foldmap(
    *,
    annotations: str | Path,
    interactions: Sequence[str | Path],
    gene: str,
    out_dir: str | Path,
    config: FoldMapConfig = FoldMapConfig(),
    coord_columns: tuple[int, int] = (1, 2),
) -> FoldMapOutputs:
    out_dir = ensure_dir(out_dir)

    features = read_annotations(annotations)
    events = read_interaction_files(interactions, coord_columns=coord_columns)
    fm = fold_map(features, events, gene, config)

    meta = {
        "annotations": str(annotations),
        "interactions": [str(p) for p in interactions],
        "query": gene,
        "found": fm.found,
        "n_events_total": len(events),
        "flank": fm.config.flank,
        "bin_size": fm.config.bin_size,
        "normalization": fm.config.normalization,
        "long_range_radius": fm.config.long_range_radius,
        "smoothing_window": fm.config.smoothing_window,
        "peak_min_distance": fm.config.peak_min_distance,
        "peak_prominence_factor": fm.config.peak_prominence_factor,
    }
    meta_path = out_dir / "meta.json"

    if not fm.found:
        write_json(meta, meta_path)
        return FoldMapOutputs(out_dir, None, None, None, None, meta_path)

    raw_path = write_matrix(fm.raw.values, out_dir / "matrix_raw.npy")
    ice_path = None
    if fm.balanced is not None:
        ice_path = write_matrix(fm.balanced.values, out_dir / "matrix_ice.npy")

    profile_path = write_table(fm.profile.to_dataframe(), out_dir / "profile.tsv")
    peaks_df = pd.DataFrame(
        [{"offset": p.index, "coord": p.position, "smoothed": p.value} for p in fm.profile.peak_records()],
        columns=["offset", "coord", "smoothed"],
    )
    peaks_path = write_table(peaks_df, out_dir / "peaks.tsv")

    first_bin, end_bin = fm.raw.feature_bins(fm.feature)
    meta.update(
        {
            "feature": fm.feature.name,
            "strand": fm.window.strand,
            "window_start": fm.window.ws,
            "window_end": fm.window.we,
            "n_bins": fm.raw.n_bins,
            "n_events_binned": fm.raw.n_events,
            "feature_bins": [first_bin, end_bin],
            "vmax": robust_vmax(fm.matrix.values),
            "n_peaks": int(fm.profile.peaks.size),
        }
    )
    write_json(meta, meta_path)

    return FoldMapOutputs(
        out_dir=Path(out_dir),
        raw_path=raw_path,
        ice_path=ice_path,
        profile_path=profile_path,
        peaks_path=peaks_path,
        meta_path=meta_path,
    )


@dataclass(frozen=True)
class PartnerMapOutputs:
    out_dir: Path
    points_path: Path
    totals_path: Path
    meta_path: Path


def run_partner_map(
    *,
    annotations: str | Path,
    pairs: str | Path,
    genes: Sequence[str],
    out_dir: str | Path,
    config: PartnerMapConfig = PartnerMapConfig(),
) -> PartnerMapOutputs:
    out_dir = ensure_dir(out_dir)

    features = read_annotations(annotations)
    edges = read_edges(pairs)
    pm = partner_map(features, edges, genes, config)

    points_path = write_table(pm.to_dataframe(), out_dir / "points.tsv")
    totals_df = pd.DataFrame({"gene": list(pm.totals), "total_counts": list(pm.totals.values())})
    totals_path = write_table(totals_df, out_dir / "totals.tsv")

    cap = pm.config.y_cap
    meta = {
        "annotations": str(annotations),
        "pairs": str(pairs),
        "genes": list(genes),
        "missing": list(pm.missing),
        "min_count": pm.config.min_count,
        "min_separation": pm.config.min_separation,
        "cluster_radius": pm.config.cluster_radius,
        "exclude_types": list(pm.config.exclude_types),
        "y_cap": cap,
        "symlog": {"linthresh": pm.scale.linthresh, "base": pm.scale.base},
        "ticks": [[v, float(pm.scale.fraction(v, cap))] for v, _ in pm.scale.ticks(DEFAULT_TICKS, cap=cap)],
    }
    meta_path = write_json(meta, out_dir / "meta.json")

    return PartnerMapOutputs(out_dir=Path(out_dir), points_path=points_path, totals_path=totals_path, meta_path=meta_path)


@dataclass(frozen=True)
class GlobalMapOutputs:
    out_dir: Path
    edges_path: Path
    meta_path: Path


def run_global_map(
    *,
    pairs: str | Path,
    out_dir: str | Path,
    primary: str | None = None,
    config: GlobalMapConfig = GlobalMapConfig(),
) -> GlobalMapOutputs:
    out_dir = ensure_dir(out_dir)

    gm = global_map(read_edges(pairs), primary, config)
    edges_path = write_table(gm.to_dataframe(), out_dir / "edges.tsv")
    meta = {
        "pairs": str(pairs),
        "primary": gm.primary,
        "primaries": list(gm.primaries),
        "n_edges": len(gm.points),
        "min_count": gm.config.min_count,
        "min_odds_ratio": gm.config.min_odds_ratio,
        "highlight_types": list(gm.config.highlight_types),
        "count_offset": gm.config.count_offset,
    }
    meta_path = write_json(meta, out_dir / "meta.json")

    return GlobalMapOutputs(out_dir=Path(out_dir), edges_path=edges_path, meta_path=meta_path)
