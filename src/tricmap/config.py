"""Explicit per-call parameters.

Nothing here reads globals, the environment or remembered presets; callers build a
config and pass it in. Configs are frozen, so they can key a memo cache.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

NORMALIZATIONS = ("raw", "ice")


@dataclass(frozen=True)
class FoldMapConfig:
    flank: int = 200
    bin_size: int = 20
    normalization: str = "raw"
    long_range_radius: int = 5000
    smoothing_window: int = 3
    peak_min_distance: int = 3
    peak_prominence_factor: float = 0.25
    ice_max_iter: int = 250
    ice_tol: float = 1e-4

    def __post_init__(self) -> None:
        norm = str(self.normalization).lower()
        if norm not in NORMALIZATIONS:
            raise ValueError(f"Unknown normalization={self.normalization!r}; expected 'raw' or 'ice'")
        object.__setattr__(self, "normalization", norm)

    def clamped(self) -> "FoldMapConfig":
        """Copy with degenerate values raised to their valid minimums."""
        k = max(1, int(self.smoothing_window))
        if k % 2 == 0:
            k += 1
        return replace(
            self,
            flank=max(0, int(self.flank)),
            bin_size=max(1, int(self.bin_size)),
            long_range_radius=max(0, int(self.long_range_radius)),
            smoothing_window=k,
            peak_min_distance=max(1, int(self.peak_min_distance)),
            peak_prominence_factor=max(0.0, float(self.peak_prominence_factor)),
            ice_max_iter=max(1, int(self.ice_max_iter)),
            ice_tol=max(0.0, float(self.ice_tol)),
        )


@dataclass(frozen=True)
class PartnerMapConfig:
    min_count: float = 10
    min_separation: int = 5000
    cluster_radius: int = 1000
    exclude_types: tuple[str, ...] = ("hkRNA",)
    y_cap: float = 5000
    symlog_linthresh: float = 10.0
    symlog_base: float = 10.0

    def clamped(self) -> "PartnerMapConfig":
        return replace(
            self,
            min_count=max(0.0, float(self.min_count)),
            min_separation=max(0, int(self.min_separation)),
            cluster_radius=max(0, int(self.cluster_radius)),
            exclude_types=tuple(self.exclude_types),
        )


@dataclass(frozen=True)
class GlobalMapConfig:
    min_count: float = 0
    min_odds_ratio: float = 0
    highlight_types: tuple[str, ...] = ("5UTR", "CDS", "sRNA")
    count_offset: float | None = None

    def clamped(self) -> "GlobalMapConfig":
        return replace(
            self,
            min_count=max(0.0, float(self.min_count)),
            min_odds_ratio=max(0.0, float(self.min_odds_ratio)),
            highlight_types=tuple(self.highlight_types),
        )
