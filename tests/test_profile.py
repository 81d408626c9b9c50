import numpy as np

from tricmap.profile import extract_profile, long_range_profile, moving_average
from tricmap.window import CoordinateWindow


def test_long_range_profile_counts_only_distant_partners():
    w = CoordinateWindow(ws=1000, we=1099)
    events = [
        (1010, 9000),  # far partner, counted at offset 10
        (9000, 1010),  # order does not matter
        (1020, 1050),  # both ends in window
        (1030, 5000),  # partner within the 5 kb neighbourhood
        (1040, 6099),  # exactly at we + R -> still near
        (1040, 6100),  # just beyond
        (50, 9000),  # neither end in window
    ]
    prof = long_range_profile(events, w, radius=5000)

    assert prof.shape == (100,)
    assert prof[10] == 2
    assert prof[40] == 1
    assert prof.sum() == 3


def test_long_range_profile_reverse_strand_offsets():
    w = CoordinateWindow(ws=1000, we=1099, strand="-")
    prof = long_range_profile([(1099, 100_000)], w, radius=10)
    assert prof[0] == 1


def test_long_range_profile_empty():
    w = CoordinateWindow(ws=1, we=10)
    assert not long_range_profile([], w).any()


def test_moving_average_edges_use_available_neighbours():
    x = np.array([3.0, 0.0, 0.0, 6.0])
    y = moving_average(x, 3)
    assert np.allclose(y, [1.5, 1.0, 2.0, 3.0])


def test_moving_average_even_window_behaves_as_next_odd():
    x = np.arange(6, dtype=float)
    assert np.allclose(moving_average(x, 4), moving_average(x, 5))


def test_moving_average_identity_for_k1():
    x = np.array([1.0, 5.0, 2.0])
    y = moving_average(x, 1)
    assert np.array_equal(x, y)
    assert y is not x


def test_extract_profile_calls_peaks_on_smoothed_signal():
    w = CoordinateWindow(ws=1000, we=1199)
    events = (
        [(1049, 50_000)] * 5
        + [(1050, 50_000)] * 10
        + [(1051, 50_000)] * 5
        + [(1149, 60_000)] * 3
        + [(1150, 60_000)] * 6
        + [(1151, 60_000)] * 3
    )
    p = extract_profile(events, w, radius=5000, smoothing=3, min_distance=5, prominence_factor=0.25)

    assert p.peaks.tolist() == [50, 150]
    recs = p.peak_records()
    assert [r.position for r in recs] == [1050, 1150]
    assert recs[0].value > recs[1].value

    df = p.to_dataframe()
    assert df.shape[0] == 200
    assert df["is_peak"].sum() == 2
    assert df.loc[50, "coord"] == 1050


def test_long_range_profile_skips_oversized_coordinates():
    w = CoordinateWindow(ws=1000, we=1099)
    prof = long_range_profile([(1010, 9000), (1e20, 1010)], w, radius=5000)
    assert prof[10] == 1
    assert prof.sum() == 1
