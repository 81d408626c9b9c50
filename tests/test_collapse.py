import numpy as np

from tricmap.collapse import (
    Candidate,
    collapse_windowed_peaks,
    default_primary,
    marker_size,
    place_edges,
    select_partner_points,
    select_primary_edges,
    total_counts,
)
from tricmap.records import FeatureIndex, WeightedEdge
from tricmap.synth import make_demo_partner_dataset


def _cands(positions, weights):
    return [Candidate(p, w, payload=i) for i, (p, w) in enumerate(zip(positions, weights))]


def test_two_clusters_keep_max_weight():
    out = collapse_windowed_peaks(_cands([100, 500, 1600, 1650], [5, 9, 3, 7]), radius=1000)
    assert [(c.position, c.weight) for c in out] == [(500, 9), (1650, 7)]


def test_input_order_does_not_matter():
    out = collapse_windowed_peaks(_cands([1650, 100, 1600, 500], [7, 5, 3, 9]), radius=1000)
    assert [c.position for c in out] == [500, 1650]


def test_first_of_equal_weights_wins():
    out = collapse_windowed_peaks(_cands([100, 200, 300], [4, 4, 4]), radius=1000)
    assert len(out) == 1
    assert out[0].position == 100


def test_span_is_measured_from_current_representative():
    # 900 replaces 0 as representative, so 1800 (> 0 + 1000) still joins its cluster.
    out = collapse_windowed_peaks(_cands([0, 900, 1800, 2901], [1, 5, 2, 1]), radius=1000)
    assert [(c.position, c.weight) for c in out] == [(900, 5), (2901, 1)]


def test_empty_input():
    assert collapse_windowed_peaks([]) == []


def test_consecutive_representatives_are_more_than_radius_apart():
    rng = np.random.default_rng(3)
    pos = rng.integers(0, 50_000, 400)
    w = rng.random(400)
    out = collapse_windowed_peaks(_cands(pos, w), radius=1000)
    gaps = np.diff([c.position for c in out])
    assert np.all(gaps > 1000)


def test_select_partner_points_on_demo():
    features, edges = make_demo_partner_dataset()
    idx = FeatureIndex.build(features)

    pts = select_partner_points(edges, idx, "gcvb")
    assert [p.partner for p in pts] == ["oppA_5UTR", "argT_5UTR", "gltI_5UTR", "dppB_5UTR"]
    assert all(p.focal == "GcvB" for p in pts)
    assert all(p.category == "5'UTR" for p in pts)
    assert pts[-1].weight == 31.0


def test_select_partner_points_filters():
    features, edges = make_demo_partner_dataset()
    idx = FeatureIndex.build(features)

    assert len(select_partner_points(edges, idx, "GcvB", min_count=20)) == 2
    assert select_partner_points(edges, idx, "nope") == []

    close = [WeightedEdge("GcvB", "RyhB", 99, 50.0, "sRNA", "sRNA")]
    assert select_partner_points(close, idx, "GcvB") == []

    with_hk = select_partner_points(edges, idx, "GcvB", exclude_types=(), min_count=0)
    assert "16S_rRNA" in [p.partner for p in with_hk]


def test_y_cap():
    features, _ = make_demo_partner_dataset()
    idx = FeatureIndex.build(features)
    edges = [WeightedEdge("GcvB", "oppA_5UTR", 20, 9000.0)]
    (p,) = select_partner_points(edges, idx, "GcvB", y_cap=5000)
    assert p.weight == 9000.0
    assert p.capped_weight == 5000.0


def test_total_counts():
    _, edges = make_demo_partner_dataset()
    assert total_counts(edges, "GcvB") == 185
    assert total_counts(edges, "sodB_5UTR") == 30
    assert total_counts(edges, "missing") == 0


def test_default_primary_is_most_frequent_ref_first_seen_on_ties():
    edges = [
        WeightedEdge("ArcZ", "a", 1),
        WeightedEdge("GcvB", "b", 1),
        WeightedEdge("GcvB", "c", 1),
        WeightedEdge("ArcZ", "d", 1),
    ]
    assert default_primary(edges) == "ArcZ"
    assert default_primary(edges + [WeightedEdge("GcvB", "e", 1)]) == "GcvB"
    assert default_primary([]) is None


def test_select_primary_edges_filters():
    edges = [
        WeightedEdge("GcvB", "oppA", 28, 24.1, target_type="5'UTR"),
        WeightedEdge("GcvB", "low", 2, 30.0, target_type="CDS"),
        WeightedEdge("GcvB", "weak", 20, 0.5, target_type="CDS"),
        WeightedEdge("GcvB", "no_or", 20, None, target_type="CDS"),
        WeightedEdge("GcvB", "16S", 50, 9.0, target_type="hkRNA"),
        WeightedEdge("GcvB", "untyped", 20, 9.0),
        WeightedEdge("RyhB", "sodB", 30, 25.4, target_type="5UTR"),
    ]
    kept = select_primary_edges(edges, "gcvb", min_count=5, min_odds_ratio=1)
    assert [e.target for e in kept] == ["oppA", "untyped"]

    everything = select_primary_edges(edges, "GcvB", types=())
    assert len(everything) == 6


def test_place_edges_falls_back_to_index_spacing():
    edges = [
        WeightedEdge("GcvB", "a", 4, coord_target=2_100_000),
        WeightedEdge("GcvB", "b", 9),
    ]
    pts = place_edges(edges)
    assert [p.position for p in pts] == [2_100_000, 1000]
    assert np.isclose(pts[0].size, 2 * 1.4 + 2)
    assert np.isclose(pts[1].size, 3 * 1.4 + 2)


def test_marker_size_with_offset_never_negative():
    assert marker_size(4, offset=-10) == 2
    assert np.isclose(marker_size(4, offset=5), 3 * 1.4 + 2)
