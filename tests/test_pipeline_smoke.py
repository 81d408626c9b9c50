import json

import numpy as np
import pandas as pd

from tricmap.cli import main
from tricmap.config import FoldMapConfig, GlobalMapConfig, PartnerMapConfig
from tricmap.pipeline import fold_map, global_map, partner_map, run_foldmap, run_global_map, run_partner_map
from tricmap.synth import DEMO_FOLD_GENE, make_demo_fold_dataset, make_demo_partner_dataset, write_demo_dataset


def test_fold_map_on_demo():
    features, events = make_demo_fold_dataset()
    fm = fold_map(features, events, "GENE10", FoldMapConfig(flank=200, bin_size=20, normalization="ice"))

    assert fm.found
    assert fm.window.ws == 999_800 and fm.window.we == 1_001_400
    assert fm.raw.n_bins == 81
    assert np.array_equal(fm.raw.values, fm.raw.values.T)
    assert fm.matrix is fm.balanced
    assert fm.balanced.mode == "ice"
    assert np.allclose(fm.balanced.values, fm.balanced.values.T)
    assert fm.profile.raw.sum() == 200
    assert fm.profile.peaks.size > 0


def test_fold_map_unknown_gene_is_empty():
    features, events = make_demo_fold_dataset()
    fm = fold_map(features, events, "nope")
    assert not fm.found
    assert fm.window is None
    assert fm.matrix.n_bins == 0 and fm.matrix.total == 0
    assert fm.profile.raw.size == 0 and fm.profile.peaks.size == 0
    assert fm.profile.to_dataframe().empty


def test_fold_map_unknown_gene_with_ice_is_empty():
    features, events = make_demo_fold_dataset()
    fm = fold_map(features, events, "nope", FoldMapConfig(normalization="ice"))
    assert fm.matrix is fm.balanced
    assert fm.matrix.values.shape == (0, 0)


def test_fold_map_reads_a_one_shot_event_stream():
    features, events = make_demo_fold_dataset()
    from_list = fold_map(features, events, DEMO_FOLD_GENE)
    from_iter = fold_map(features, iter(events), DEMO_FOLD_GENE)

    assert from_iter.profile.raw.sum() == 200
    assert np.array_equal(from_iter.raw.values, from_list.raw.values)
    assert np.array_equal(from_iter.profile.peaks, from_list.profile.peaks)


def test_partner_map_on_demo():
    features, edges = make_demo_partner_dataset()
    pm = partner_map(features, edges, ["GcvB", "RyhB", "missing"], PartnerMapConfig())

    assert len(pm.points["GcvB"]) == 4
    assert len(pm.points["RyhB"]) == 2
    assert pm.missing == ("missing",)
    assert pm.totals["RyhB"] == 46

    df = pm.to_dataframe()
    assert df.shape[0] == 6
    assert (df["y_fraction"] > 0).all() and (df["y_fraction"] <= 1).all()


def test_partner_map_reads_a_one_shot_edge_stream():
    features, edges = make_demo_partner_dataset()
    pm = partner_map(features, iter(edges), ["GcvB", "RyhB"])
    assert len(pm.points["GcvB"]) == 4
    assert len(pm.points["RyhB"]) == 2
    assert pm.totals["GcvB"] == 185


def test_global_map_defaults_to_busiest_ref():
    _, edges = make_demo_partner_dataset()
    gm = global_map(iter(edges))

    assert gm.primary == "GcvB"
    assert gm.primaries == ("GcvB", "RyhB")
    assert [p.target for p in gm.points] == ["oppA_5UTR", "argT_5UTR", "dppA_5UTR", "dppB_5UTR", "gltI_5UTR"]
    assert gm.points[0].position == 2_100_000

    strict = global_map(edges, "GcvB", GlobalMapConfig(min_count=20, min_odds_ratio=20))
    assert [p.target for p in strict.points] == ["oppA_5UTR"]

    df = global_map(edges, "RyhB").to_dataframe()
    assert df["target"].tolist() == ["sodB_5UTR", "sdhC_5UTR"]


def test_global_map_without_edges():
    gm = global_map([])
    assert gm.primary is None
    assert gm.to_dataframe().empty


def test_run_pipelines_on_written_demo(tmp_path):
    paths = write_demo_dataset(tmp_path / "demo")

    fold = run_foldmap(
        annotations=paths["annotations"],
        interactions=[paths["chimeras"]],
        gene=DEMO_FOLD_GENE,
        out_dir=tmp_path / "fold",
        config=FoldMapConfig(normalization="ice"),
    )
    raw = np.load(fold.raw_path)
    ice = np.load(fold.ice_path)
    assert raw.shape == ice.shape == (81, 81)
    assert raw.sum() > 0

    meta = json.loads(fold.meta_path.read_text())
    assert meta["found"] is True
    assert meta["n_events_total"] == 1400
    assert meta["feature_bins"] == [10, 71]

    prof = pd.read_csv(fold.profile_path, sep="\t")
    assert prof.shape[0] == 1601

    partners = run_partner_map(
        annotations=paths["annotations"],
        pairs=paths["pairs"],
        genes=["GcvB", "RyhB"],
        out_dir=tmp_path / "cs",
    )
    pts = pd.read_csv(partners.points_path, sep="\t")
    assert pts.shape[0] == 6
    meta = json.loads(partners.meta_path.read_text())
    assert meta["ticks"][-1] == [5000, 1.0]

    overview = run_global_map(pairs=paths["pairs"], out_dir=tmp_path / "global")
    edges = pd.read_csv(overview.edges_path, sep="\t")
    assert edges.shape[0] == 5
    assert edges["position"].tolist()[0] == 2_100_000
    assert json.loads(overview.meta_path.read_text())["primary"] == "GcvB"


def test_run_foldmap_missing_gene_writes_meta_only(tmp_path):
    paths = write_demo_dataset(tmp_path / "demo")
    out = run_foldmap(
        annotations=paths["annotations"],
        interactions=[paths["chimeras"]],
        gene="absent",
        out_dir=tmp_path / "fold",
    )
    assert out.raw_path is None
    assert json.loads(out.meta_path.read_text())["found"] is False


def test_cli_demo(tmp_path):
    main(["--log", "WARNING", "demo", "--data_dir", str(tmp_path / "d"), "--out_dir", str(tmp_path / "o"), "--norm", "ice"])
    assert (tmp_path / "o" / "foldmap" / "matrix_ice.npy").exists()
    assert (tmp_path / "o" / "csmap" / "points.tsv").exists()
    assert (tmp_path / "o" / "globalmap" / "edges.tsv").exists()
