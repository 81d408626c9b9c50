from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from .records import AnnotatedFeature, InteractionEvent, WeightedEdge

logger = logging.getLogger(__name__)

_TAB_SUFFIXES = {".bed", ".tsv", ".txt", ".bedpe"}


@dataclass(frozen=True)
class AnnotationColumns:
    """Where each annotation field lives.

    Names when the file has a header row, 0-based positions otherwise.
    Optional fields may be None.
    """

    name: str | int = "gene_name"
    start: str | int = "start"
    end: str | int = "end"
    strand: str | int | None = "strand"
    chrom: str | int | None = "chromosome"
    feature_type: str | int | None = "feature_type"


@dataclass(frozen=True)
class EdgeColumns:
    ref: str = "ref"
    target: str = "target"
    count: str = "counts"
    odds_ratio: str | None = "odds_ratio"
    ref_type: str | None = "ref_type"
    target_type: str | None = "target_type"
    coord_ref: str | None = "coord_ref"
    coord_target: str | None = "coord_target"


def _default_sep(path: Path, sep: str | None) -> str:
    if sep is not None:
        return sep
    return "\t" if path.suffix.lower() in _TAB_SUFFIXES else ","


def _require_file(path: str | Path) -> Path:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(str(path))
    return path


def _optional(row: pd.Series, col) -> str | None:
    if col is None or col not in row.index:
        return None
    v = row[col]
    if pd.isna(v):
        return None
    v = str(v).strip()
    return v or None


def read_annotations(
    path: str | Path,
    *,
    columns: AnnotationColumns = AnnotationColumns(),
    sep: str | None = None,
    header: bool = True,
) -> list[AnnotatedFeature]:
    """Read annotated features using an explicit column mapping.

    Rows without a name or numeric start/end are skipped; reversed spans
    (end < start) are swapped.
    """

    path = _require_file(path)
    df = pd.read_csv(path, sep=_default_sep(path, sep), header=0 if header else None, skip_blank_lines=True)

    for key in ("name", "start", "end"):
        col = getattr(columns, key)
        if col not in df.columns:
            raise ValueError(f"Annotation file {path} has no {key} column {col!r}")

    starts = pd.to_numeric(df[columns.start], errors="coerce")
    ends = pd.to_numeric(df[columns.end], errors="coerce")
    names = df[columns.name]
    ok = names.notna() & starts.notna() & ends.notna()
    if (~ok).any():
        logger.info("Skipped %d incomplete annotation rows in %s", int((~ok).sum()), path.name)

    out: list[AnnotatedFeature] = []
    for idx in df.index[ok]:
        row = df.loc[idx]
        s, e = int(starts[idx]), int(ends[idx])
        if e < s:
            s, e = e, s
        out.append(
            AnnotatedFeature.from_bounds(
                str(names[idx]),
                s,
                e,
                strand=_optional(row, columns.strand) or "+",
                chrom=_optional(row, columns.chrom),
                feature_type=_optional(row, columns.feature_type),
            )
        )
    return out


def read_interactions(
    path: str | Path,
    *,
    coord_columns: tuple[int, int] = (1, 2),
    sep: str | None = None,
) -> list[InteractionEvent]:
    """Read coordinate pairs from a BED-like or delimited file without header.

    `coord_columns` are the 0-based positions of the two ligated
    coordinates (BED: start/end columns 1 and 2). UCSC `track`/`browser`
    lines and rows whose coordinates are not numeric are skipped.
    """

    path = _require_file(path)
    lines = [
        ln
        for ln in path.read_text().splitlines()
        if ln.strip() and not ln.lower().startswith(("track", "browser", "#"))
    ]
    if not lines:
        return []

    df = pd.read_csv(
        io.StringIO("\n".join(lines)),
        sep=_default_sep(path, sep),
        header=None,
        usecols=list(coord_columns),
        on_bad_lines="skip",
        dtype=str,
    )
    c1 = pd.to_numeric(df[coord_columns[0]], errors="coerce")
    c2 = pd.to_numeric(df[coord_columns[1]], errors="coerce")
    ok = c1.notna() & c2.notna()
    if (~ok).any():
        logger.info("Skipped %d non-numeric rows in %s", int((~ok).sum()), path.name)

    a = c1[ok].to_numpy(dtype=np.int64)
    b = c2[ok].to_numpy(dtype=np.int64)
    return [InteractionEvent(int(x), int(y)) for x, y in zip(a, b)]


def read_interaction_files(
    paths: Iterable[str | Path],
    *,
    coord_columns: tuple[int, int] = (1, 2),
    sep: str | None = None,
) -> list[InteractionEvent]:
    out: list[InteractionEvent] = []
    for p in paths:
        out.extend(read_interactions(p, coord_columns=coord_columns, sep=sep))
    return out


def _edges_from_frame(df: pd.DataFrame, columns: EdgeColumns, source: str) -> list[WeightedEdge]:
    for key in ("ref", "target", "count"):
        col = getattr(columns, key)
        if col not in df.columns:
            raise ValueError(f"Pairs file {source} has no {key} column {col!r}")

    def num(col: str | None) -> pd.Series:
        if col is None or col not in df.columns:
            return pd.Series(np.nan, index=df.index)
        return pd.to_numeric(df[col], errors="coerce")

    counts = num(columns.count).fillna(0.0)
    odds = num(columns.odds_ratio)
    coord_ref = num(columns.coord_ref)
    coord_target = num(columns.coord_target)

    out: list[WeightedEdge] = []
    for idx in df.index:
        row = df.loc[idx]
        ref = _optional(row, columns.ref)
        target = _optional(row, columns.target)
        if not ref or not target:
            continue
        out.append(
            WeightedEdge(
                ref=ref,
                target=target,
                count=float(counts[idx]),
                odds_ratio=None if pd.isna(odds[idx]) else float(odds[idx]),
                ref_type=_optional(row, columns.ref_type),
                target_type=_optional(row, columns.target_type),
                coord_ref=None if pd.isna(coord_ref[idx]) else int(coord_ref[idx]),
                coord_target=None if pd.isna(coord_target[idx]) else int(coord_target[idx]),
            )
        )
    return out


def read_edges(
    path: str | Path,
    *,
    columns: EdgeColumns = EdgeColumns(),
    sep: str | None = None,
) -> list[WeightedEdge]:
    """Read feature-to-feature edges from CSV/TSV (with header) or JSON records."""

    path = _require_file(path)
    if path.suffix.lower() == ".json":
        df = pd.read_json(path, orient="records")
    else:
        df = pd.read_csv(path, sep=_default_sep(path, sep))
    return _edges_from_frame(df, columns, path.name)
