from __future__ import annotations

from pathlib import Path

import pandas as pd

from .records import AnnotatedFeature, InteractionEvent, WeightedEdge
from .reporting import ensure_dir, write_json

DEMO_FOLD_GENE = "gene10"


def make_demo_fold_dataset() -> tuple[list[AnnotatedFeature], list[InteractionEvent]]:
    """One '+' gene with a dense local diagonal, a domain block and long-range hits."""
    features = [AnnotatedFeature.from_bounds(DEMO_FOLD_GENE, 1_000_000, 1_001_200, strand="+", feature_type="CDS")]

    events: list[InteractionEvent] = []
    for i in range(900):
        events.append(InteractionEvent(1_000_020 + (i % 600), 1_000_030 + ((i * 7) % 600)))
    for i in range(300):
        events.append(InteractionEvent(1_000_100 + (i % 120), 1_000_600 + (i % 120)))
    # partners >= 5 kb away feed the long-range profile
    for i in range(200):
        events.append(InteractionEvent(1_000_050 + (i % 200), 1_010_000 + (i % 500)))
    return features, events


def make_demo_partner_dataset() -> tuple[list[AnnotatedFeature], list[WeightedEdge]]:
    """Two sRNA hubs with 5'UTR targets plus hkRNA background."""
    features = [
        AnnotatedFeature.from_bounds("GcvB", 100, 300, feature_type="sRNA"),
        AnnotatedFeature.from_bounds("RyhB", 200, 290, feature_type="sRNA"),
        AnnotatedFeature.from_bounds("oppA_5UTR", 2_100_000, 2_100_150, feature_type="5'UTR"),
        AnnotatedFeature.from_bounds("argT_5UTR", 3_420_000, 3_420_150, feature_type="5'UTR"),
        AnnotatedFeature.from_bounds("dppA_5UTR", 4_850_000, 4_850_150, feature_type="5'UTR"),
        AnnotatedFeature.from_bounds("dppB_5UTR", 4_850_600, 4_850_700, feature_type="5'UTR"),
        AnnotatedFeature.from_bounds("gltI_5UTR", 4_130_000, 4_130_150, feature_type="5'UTR"),
        AnnotatedFeature.from_bounds("16S_rRNA", 4_200_000, 4_201_500, feature_type="hkRNA"),
        AnnotatedFeature.from_bounds("23S_rRNA", 4_205_000, 4_207_900, feature_type="hkRNA"),
        AnnotatedFeature.from_bounds("sodB_5UTR", 1_850_000, 1_850_150, feature_type="5'UTR"),
        AnnotatedFeature.from_bounds("sdhC_5UTR", 1_900_000, 1_900_150, feature_type="5'UTR"),
    ]
    starts = {f.name: f.start for f in features}

    def edge(ref, target, count, odds, target_type):
        return WeightedEdge(ref, target, count, odds, "sRNA", target_type, starts[ref], starts[target])

    edges = [
        edge("GcvB", "oppA_5UTR", 28, 24.1, "5'UTR"),
        edge("GcvB", "argT_5UTR", 22, 19.3, "5'UTR"),
        edge("GcvB", "dppA_5UTR", 18, 14.9, "5'UTR"),
        edge("GcvB", "dppB_5UTR", 15, 31.0, "5'UTR"),
        edge("GcvB", "gltI_5UTR", 12, 10.7, "5'UTR"),
        edge("GcvB", "16S_rRNA", 50, 1.2, "hkRNA"),
        edge("GcvB", "23S_rRNA", 40, 0.9, "hkRNA"),
        edge("RyhB", "sodB_5UTR", 30, 25.4, "5'UTR"),
        edge("RyhB", "sdhC_5UTR", 16, 12.2, "5'UTR"),
    ]
    return features, edges


def _features_frame(features: list[AnnotatedFeature]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "gene_name": [f.name for f in features],
            "start": [f.start for f in features],
            "end": [f.end for f in features],
            "strand": [f.strand for f in features],
            "feature_type": [f.feature_type for f in features],
        }
    )


def write_demo_dataset(out_dir: str | Path) -> dict[str, Path]:
    """Write both demos as annotation CSV, chimera BED and pairs CSV."""
    out_dir = ensure_dir(out_dir)

    fold_features, events = make_demo_fold_dataset()
    partner_features, edges = make_demo_partner_dataset()

    annotations_path = out_dir / "annotations.csv"
    _features_frame(fold_features + partner_features).to_csv(annotations_path, index=False)

    # One row per chimera in BED-like layout: chrom, coord1, coord2.
    chimeras_path = out_dir / "chimeras.bed"
    lines = ["track name=demo_chimeras\n"]
    for c1, c2 in events:
        lines.append(f"chr\t{int(c1)}\t{int(c2)}\n")
    chimeras_path.write_text("".join(lines))

    pairs_path = out_dir / "pairs.csv"
    pd.DataFrame(
        {
            "ref": [e.ref for e in edges],
            "target": [e.target for e in edges],
            "counts": [e.count for e in edges],
            "odds_ratio": [e.odds_ratio for e in edges],
            "ref_type": [e.ref_type for e in edges],
            "target_type": [e.target_type for e in edges],
            "coord_ref": [e.coord_ref for e in edges],
            "coord_target": [e.coord_target for e in edges],
        }
    ).to_csv(pairs_path, index=False)

    meta_path = out_dir / "meta.json"
    write_json(
        {
            "fold_gene": DEMO_FOLD_GENE,
            "n_events": len(events),
            "n_edges": len(edges),
            "annotations_format": "CSV with header (gene_name,start,end,strand,feature_type)",
            "chimeras_format": "BED-like TSV (chrom,coord1,coord2)",
            "pairs_format": "CSV with header (ref,target,counts,odds_ratio,ref_type,target_type,coord_ref,coord_target)",
        },
        meta_path,
    )

    return {
        "annotations": annotations_path,
        "chimeras": chimeras_path,
        "pairs": pairs_path,
        "meta": meta_path,
    }
