from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .config import NORMALIZATIONS, FoldMapConfig, GlobalMapConfig, PartnerMapConfig
from .pipeline import run_foldmap, run_global_map, run_partner_map
from .synth import DEMO_FOLD_GENE, write_demo_dataset

logger = logging.getLogger("tricmap")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%H:%M:%S",
    )


def _add_foldmap_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--flank", type=int, default=200, help="nt added on each side of the feature")
    p.add_argument("--bin", dest="bin_size", type=int, default=20, help="bin size in nt")
    p.add_argument("--norm", type=str, default="raw", choices=list(NORMALIZATIONS))
    p.add_argument("--radius", type=int, default=5000, help="long-range exclusion radius (nt)")
    p.add_argument("--smooth", type=int, default=3, help="moving-average window (odd, nt)")
    p.add_argument("--min_distance", type=int, default=3, help="minimum peak spacing (nt)")
    p.add_argument("--prominence_factor", type=float, default=0.25, help="peak prominence as a multiple of std")
    p.add_argument("--ice_max_iter", type=int, default=250)
    p.add_argument("--ice_tol", type=float, default=1e-4)


def _add_csmap_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--min_count", type=float, default=10)
    p.add_argument("--min_separation", type=int, default=5000, help="minimum partner distance (nt)")
    p.add_argument("--cluster_radius", type=int, default=1000, help="collapsing radius (nt)")
    p.add_argument("--exclude_types", nargs="*", default=["hkRNA"])
    p.add_argument("--y_cap", type=float, default=5000)
    p.add_argument("--linthresh", type=float, default=10.0)
    p.add_argument("--base", type=float, default=10.0)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="tricmap")
    p.add_argument("--log", type=str, default="INFO", help="logging level")
    sub = p.add_subparsers(dest="cmd", required=True)

    pf = sub.add_parser("foldmap", help="Contact matrix + long-range profile for one feature")
    pf.add_argument("--annotations", type=str, required=True)
    pf.add_argument("--interactions", type=str, nargs="+", required=True, help="chimera BED/CSV files")
    pf.add_argument(
        "--coord_columns",
        type=int,
        nargs=2,
        default=[1, 2],
        help="0-based columns holding the two ligated coordinates",
    )
    pf.add_argument("--gene", type=str, required=True)
    pf.add_argument("--out_dir", type=str, required=True)
    _add_foldmap_options(pf)

    pc = sub.add_parser("csmap", help="Collapsed long-range partners for one or more features")
    pc.add_argument("--annotations", type=str, required=True)
    pc.add_argument("--pairs", type=str, required=True, help="pairs table (CSV/TSV/JSON)")
    pc.add_argument("--genes", type=str, nargs="+", required=True)
    pc.add_argument("--out_dir", type=str, required=True)
    _add_csmap_options(pc)

    pg = sub.add_parser("globalmap", help="Genome-wide edges of one primary feature")
    pg.add_argument("--pairs", type=str, required=True, help="pairs table (CSV/TSV/JSON)")
    pg.add_argument("--primary", type=str, default=None, help="defaults to the most frequent ref")
    pg.add_argument("--out_dir", type=str, required=True)
    pg.add_argument("--min_count", type=float, default=0)
    pg.add_argument("--min_odds_ratio", type=float, default=0)
    pg.add_argument("--types", nargs="*", default=["5UTR", "CDS", "sRNA"], help="highlighted target types")
    pg.add_argument("--count_offset", type=float, default=None, help="marker area from count + offset")

    pdm = sub.add_parser("demo", help="Write the built-in demo data and run every view on it")
    pdm.add_argument("--data_dir", type=str, default="data/demo")
    pdm.add_argument("--out_dir", type=str, default="outputs/demo")
    _add_foldmap_options(pdm)
    _add_csmap_options(pdm)

    return p


def _foldmap_config(args: argparse.Namespace) -> FoldMapConfig:
    return FoldMapConfig(
        flank=int(args.flank),
        bin_size=int(args.bin_size),
        normalization=str(args.norm),
        long_range_radius=int(args.radius),
        smoothing_window=int(args.smooth),
        peak_min_distance=int(args.min_distance),
        peak_prominence_factor=float(args.prominence_factor),
        ice_max_iter=int(args.ice_max_iter),
        ice_tol=float(args.ice_tol),
    )


def _partner_config(args: argparse.Namespace) -> PartnerMapConfig:
    return PartnerMapConfig(
        min_count=float(args.min_count),
        min_separation=int(args.min_separation),
        cluster_radius=int(args.cluster_radius),
        exclude_types=tuple(args.exclude_types),
        y_cap=float(args.y_cap),
        symlog_linthresh=float(args.linthresh),
        symlog_base=float(args.base),
    )


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    setup_logging(args.log)

    if args.cmd == "foldmap":
        out = run_foldmap(
            annotations=args.annotations,
            interactions=args.interactions,
            gene=str(args.gene),
            out_dir=args.out_dir,
            config=_foldmap_config(args),
            coord_columns=(int(args.coord_columns[0]), int(args.coord_columns[1])),
        )
        if out.raw_path is None:
            logger.warning("Gene %r not found; wrote %s only", args.gene, out.meta_path.as_posix())
        print("Wrote outputs to:", out.out_dir.as_posix())
        return

    if args.cmd == "csmap":
        out = run_partner_map(
            annotations=args.annotations,
            pairs=args.pairs,
            genes=[str(g) for g in args.genes],
            out_dir=args.out_dir,
            config=_partner_config(args),
        )
        print("Wrote outputs to:", out.out_dir.as_posix())
        return

    if args.cmd == "globalmap":
        out = run_global_map(
            pairs=args.pairs,
            primary=args.primary,
            out_dir=args.out_dir,
            config=GlobalMapConfig(
                min_count=float(args.min_count),
                min_odds_ratio=float(args.min_odds_ratio),
                highlight_types=tuple(args.types),
                count_offset=args.count_offset,
            ),
        )
        print("Wrote outputs to:", out.out_dir.as_posix())
        return

    if args.cmd == "demo":
        paths = write_demo_dataset(args.data_dir)
        out_dir = Path(args.out_dir)
        fold = run_foldmap(
            annotations=paths["annotations"],
            interactions=[paths["chimeras"]],
            gene=DEMO_FOLD_GENE,
            out_dir=out_dir / "foldmap",
            config=_foldmap_config(args),
        )
        partners = run_partner_map(
            annotations=paths["annotations"],
            pairs=paths["pairs"],
            genes=["GcvB", "RyhB"],
            out_dir=out_dir / "csmap",
            config=_partner_config(args),
        )
        overview = run_global_map(pairs=paths["pairs"], out_dir=out_dir / "globalmap")
        print("Demo data:")
        for k, v in paths.items():
            print(f"  {k}: {Path(v).as_posix()}")
        print("Wrote outputs to:", fold.out_dir.as_posix(), partners.out_dir.as_posix(), overview.out_dir.as_posix())
        return

    raise SystemExit(f"Unknown command: {args.cmd}")
