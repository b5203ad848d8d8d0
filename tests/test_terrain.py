import numpy as np
import pytest

from terrain import Terrain
from config import TERRAIN_START_HEIGHT


def _terrain(seed=0, **kw):
    return Terrain(rng=np.random.default_rng(seed), **kw)


def test_generate_produces_segments_plus_one_increasing_points():
    t = _terrain(segments=50, width=1000)
    pts = t.points

    assert len(pts) == 51
    assert pts[0][0] == 0.0
    assert pts[-1][0] == pytest.approx(1000.0)
    xs = [p[0] for p in pts]
    assert all(a < b for a, b in zip(xs, xs[1:]))


def test_endpoints_are_not_smoothed():
    t = _terrain()
    assert t.points[0][1] == TERRAIN_START_HEIGHT


def test_height_at_control_points_is_exact():
    t = _terrain(seed=3)
    for x, y in t.points:
        assert t.height_at(x) == y


def test_height_at_interpolates_between_points():
    t = _terrain(seed=4)
    (x0, y0), (x1, y1) = t.points[10], t.points[11]
    assert t.height_at((x0 + x1) / 2) == pytest.approx((y0 + y1) / 2)
    assert t.height_at(x0 + 0.25 * (x1 - x0)) == pytest.approx(y0 + 0.25 * (y1 - y0))


def test_height_at_beyond_ends_is_clamped():
    t = _terrain(seed=5)
    first, last = t.points[0], t.points[-1]
    assert t.height_at(last[0] + 1) == last[1]
    assert t.height_at(1e9) == last[1]
    assert t.height_at(-50) == first[1]


def test_height_is_continuous_across_segment_boundaries():
    t = _terrain(seed=6)
    for x, y in t.points[1:-1]:
        assert t.height_at(x - 1e-9) == pytest.approx(y, abs=1e-6)
        assert t.height_at(x + 1e-9) == pytest.approx(y, abs=1e-6)


def test_ground_distance_is_never_negative():
    t = _terrain(seed=7)
    for x in np.linspace(-100, 6000, 61):
        for y in (-500, 0, 250, 400, 600, 2000):
            assert t.ground_distance(x, y) >= 0.0


def test_ground_distance_measures_gap_above_ground():
    t = _terrain(seed=8)
    x, y = t.points[20]
    assert t.ground_distance(x, y - 30) == pytest.approx(30)
    assert t.ground_distance(x, y + 30) == 0.0


def test_same_seed_same_profile_and_regeneration_changes_it():
    a, b = _terrain(seed=9), _terrain(seed=9)
    assert a.points == b.points

    before = a.points
    a.generate()
    assert a.points != before
    assert len(a) == len(before)


def test_segments_must_be_positive():
    with pytest.raises(ValueError):
        Terrain(segments=0)
