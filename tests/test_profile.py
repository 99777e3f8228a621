import math

import pytest

from tunnelcad.data import Profile
from tunnelcad.geom import Arc, Line, Point2D, dist2d
from tunnelcad.profile import ProfileCache, arc_steps, compute_centroid, sample_profile


def _square(pid='square', half=1.0):
    h = half
    return Profile(pid, [
        Line((-h, -h), (h, -h)),
        Line((h, -h), (h, h)),
        Line((h, h), (-h, h)),
        Line((-h, h), (-h, -h)),
    ])


def test_arc_steps():
    assert arc_steps(10.0, 1.0, 4) == 10
    assert arc_steps(2.0, 1.0, 4) == 4
    assert arc_steps(2.0, 0.0, 3) == 3
    assert arc_steps(0.0, 1.0, 0) == 1


def test_sample_profile_lines_only():
    pts = sample_profile(_square())
    assert pts == [(-1, -1), (1, -1), (1, 1), (-1, 1), (-1, -1)]


def test_sample_profile_with_arc():
    segments = [
        Line((0, 0), (10, 0)),
        Arc((10, 0), (10, 10), 5),
    ]
    pts = sample_profile(segments, max_chord=1, min_arc_steps=4)
    # semicircle of length 5*pi needs 16 steps; the open end is closed
    assert len(pts) == 19
    assert pts[0] == Point2D(0.0, 0.0)
    assert pts[-2] == pytest.approx((10.0, 10.0))
    assert pts[-1] == pts[0]
    # counter-clockwise about (10, 5) bulges toward +x
    assert max(p.x for p in pts) == pytest.approx(15.0, abs=1e-6)
    for p in pts[2:-2]:
        assert dist2d(p, (10, 5)) == pytest.approx(5.0)


def test_sample_profile_arc_direction():
    ccw = sample_profile([Arc((1, 0), (-1, 0), 1)], min_arc_steps=4)
    cw = sample_profile([Arc((1, 0), (-1, 0), -1)], min_arc_steps=4)
    assert ccw[len(ccw) // 2].y > 0
    assert cw[len(cw) // 2].y < 0


def test_sample_profile_chord_limit():
    circle = [Arc((5, 0), (-5, 0), 5), Arc((-5, 0), (5, 0), 5)]
    pts = sample_profile(circle, max_chord=0.5, min_arc_steps=4)
    for p, q in zip(pts, pts[1:]):
        assert dist2d(p, q) <= 0.5 + 1e-9
    # already closed, so no duplicate start is added
    assert pts[-1] == pytest.approx(pts[0])
    assert dist2d(pts[-2], pts[0]) > 1e-6


def test_sample_profile_degenerate_arc_is_a_line():
    pts = sample_profile([Arc((0, 0), (10, 0), 1)])
    assert pts == [(0, 0), (10, 0), (0, 0)]


def test_sample_profile_disconnected_segments():
    pts = sample_profile([Line((0, 0), (1, 0)), Line((2, 0), (2, 1))])
    assert pts == [(0, 0), (1, 0), (2, 0), (2, 1), (0, 0)]


def test_sample_profile_empty():
    assert sample_profile([]) == []


def test_sample_profile_rejects_unknown_segments():
    with pytest.raises(TypeError):
        sample_profile([((0, 0), (1, 0))])


def test_compute_centroid():
    c = compute_centroid([Point2D(0, 0), Point2D(2, 2), Point2D(4, 0)])
    assert c.x == pytest.approx(2.0)
    assert c.y == pytest.approx(2.0 / 3.0)
    assert compute_centroid([]) == Point2D(0.0, 0.0)


# ---------------------------------------------------------------------------
# ProfileCache
# ---------------------------------------------------------------------------


def test_profile_cache_memoizes_per_options():
    cache = ProfileCache()
    square = _square()
    first = cache.sample(square, 5.0, 4)
    assert cache.sample(square, 5.0, 4) == first
    assert len(cache) == 1
    cache.sample(square, 1.0, 4)
    assert len(cache) == 2
    cache.clear()
    assert len(cache) == 0


def test_profile_cache_returns_copies():
    cache = ProfileCache()
    square = _square()
    pts = cache.sample(square, 5.0, 4)
    pts.append(Point2D(math.inf, math.inf))
    assert cache.sample(square, 5.0, 4) == sample_profile(square, 5.0, 4)
