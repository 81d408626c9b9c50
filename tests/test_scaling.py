import math

import numpy as np
import pytest

from tricmap.scaling import DEFAULT_TICKS, SymlogScale, robust_vmax, symlog


def test_symlog_zero_and_oddness():
    y = np.linspace(-500, 500, 101)
    assert symlog(0.0) == 0.0
    assert np.allclose(symlog(-y, 10, 10), -symlog(y, 10, 10))


def test_symlog_continuous_at_threshold():
    lt = 10.0
    assert symlog(lt, lt, 10) == pytest.approx(1.0)
    assert symlog(lt + 1e-9, lt, 10) == pytest.approx(1.0)
    assert symlog(-lt, lt, math.e) == pytest.approx(-1.0)


def test_symlog_values():
    assert symlog(5, 10, 10) == pytest.approx(0.5)
    assert symlog(100, 10, 10) == pytest.approx(2.0)
    assert symlog(-1000, 10, 10) == pytest.approx(-3.0)
    assert symlog(10 * math.e, 10) == pytest.approx(2.0)


def test_symlog_is_monotonic():
    y = np.linspace(-1e4, 1e4, 2001)
    assert np.all(np.diff(symlog(y, 10, 10)) > 0)


def test_symlog_rejects_bad_parameters():
    with pytest.raises(ValueError):
        symlog(1.0, 0.0)
    with pytest.raises(ValueError):
        SymlogScale(linthresh=10, base=1.0)


def test_scale_applies_same_transform_to_ticks_and_data():
    scale = SymlogScale(10, 10)
    ticks = dict(scale.ticks(DEFAULT_TICKS, cap=1000))
    assert max(ticks) == 1000
    assert ticks[100] == pytest.approx(scale(100.0))
    assert ticks[0] == 0.0


def test_scale_fraction():
    scale = SymlogScale(10, 10)
    assert scale.fraction(5000, 5000) == pytest.approx(1.0)
    assert scale.fraction(9000, 5000) == pytest.approx(1.0)
    assert scale.fraction(0, 5000) == 0.0
    assert 0 < scale.fraction(50, 5000) < 1


def test_robust_vmax():
    m = np.array([[0, 1, 2], [3, 4, 5], [0, 0, 100]], dtype=float)
    assert robust_vmax(m, 100) == 100
    assert robust_vmax(m, 50) == pytest.approx(np.percentile([1, 2, 3, 4, 5, 100], 50))
    assert robust_vmax(np.zeros((3, 3))) == 1.0
