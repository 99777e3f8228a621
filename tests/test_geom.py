import math

import pytest

from tunnelcad.geom import (
    Arc,
    Line,
    Point2D,
    arc_angle_span,
    arc_center,
    arc_length,
    normalize_angle,
    pi2,
    point2d,
    sample_arc,
    segment_from_dict,
    segment_length,
    segment_to_dict,
    segments_from_points,
    svg_arc_path,
)


def test_point2d_coercion():
    assert point2d(1, 2) == Point2D(1.0, 2.0)
    assert point2d((3, 4)) == Point2D(3.0, 4.0)
    assert point2d({'x': 5, 'y': 6}) == Point2D(5.0, 6.0)


def test_segments_coerce_their_fields():
    arc = Arc({'x': 0, 'y': 0}, (10, 10), 10)
    assert isinstance(arc.start, Point2D)
    assert arc.end == Point2D(10.0, 10.0)
    assert isinstance(arc.radius, float)
    line = Line((0, 0), (3, 4))
    assert segment_length(line) == pytest.approx(5.0)


def test_normalize_angle():
    assert normalize_angle(-math.pi / 2) == pytest.approx(3 * math.pi / 2)
    assert normalize_angle(pi2) == 0.0
    assert normalize_angle(5 * math.pi) == pytest.approx(math.pi)
    # rounds up to 2*pi without the wrap guard
    assert normalize_angle(-1e-20) == 0.0


# ---------------------------------------------------------------------------
# Arc primitives
# ---------------------------------------------------------------------------


def test_arc_center_half_circle():
    c = arc_center((0, 0), (10, 0), 5)
    assert c == pytest.approx((5.0, 0.0))


def test_arc_center_side_follows_radius_sign():
    ccw = arc_center((0, 0), (10, 10), 10)
    cw = arc_center((0, 0), (10, 10), -10)
    assert ccw == pytest.approx((0.0, 10.0))
    assert cw == pytest.approx((10.0, 0.0))


@pytest.mark.parametrize('start,end,radius', [
    ((0, 0), (10, 0), 1),     # chord longer than the diameter
    ((0, 0), (10, 0), 0),     # zero radius
    ((3, 3), (3, 3), 5),      # coincident end points
])
def test_arc_center_degenerate(start, end, radius):
    assert arc_center(start, end, radius) is None


def test_arc_angle_span_direction():
    start, end = Point2D(0, 0), Point2D(10, 10)
    span = arc_angle_span(start, end, arc_center(start, end, 10), 10)
    assert span == pytest.approx(math.pi / 2)
    span = arc_angle_span(start, end, arc_center(start, end, -10), -10)
    assert span == pytest.approx(-math.pi / 2)


def test_arc_angle_span_half_circle():
    start, end = Point2D(0, 0), Point2D(10, 0)
    center = Point2D(5, 0)
    assert arc_angle_span(start, end, center, 5) == pytest.approx(math.pi)
    assert arc_angle_span(start, end, center, -5) == pytest.approx(-math.pi)


def test_arc_length():
    assert arc_length(Arc((0, 0), (10, 10), 10)) == pytest.approx(5 * math.pi)
    assert arc_length(Arc((0, 0), (10, 10), -10)) == pytest.approx(5 * math.pi)
    assert arc_length(Arc((0, 0), (10, 0), 1)) is None
    assert segment_length(Arc((0, 0), (10, 0), 1)) is None


def test_sample_arc_midpoint():
    arc = Arc((0, 0), (10, 10), 10)
    center = arc_center(arc.start, arc.end, arc.radius)
    mid = sample_arc(arc, center, 0.5)
    r = 10 / math.sqrt(2)
    assert mid == pytest.approx((r, 10 - r))
    assert sample_arc(arc, center, 0.0) == pytest.approx((0.0, 0.0))
    assert sample_arc(arc, center, 1.0) == pytest.approx((10.0, 10.0))


def test_segment_length_rejects_unknown_types():
    with pytest.raises(TypeError):
        segment_length(((0, 0), (1, 1)))


# ---------------------------------------------------------------------------
# Construction helpers
# ---------------------------------------------------------------------------


def test_segment_dict_conversion():
    arc = segment_from_dict({'type': 'arc', 'start': {'x': 0, 'y': 0},
                             'end': {'x': 10, 'y': 10}, 'radius': -10})
    assert arc == Arc((0, 0), (10, 10), -10)
    assert segment_from_dict(segment_to_dict(arc)) == arc

    line = segment_from_dict({'start': [0, 0], 'end': [1, 0]})
    assert isinstance(line, Line)


def test_segment_from_dict_unknown_type():
    with pytest.raises(ValueError):
        segment_from_dict({'type': 'spline', 'start': [0, 0], 'end': [1, 0]})


def test_segments_from_points():
    points = [
        {'x': 0, 'y': 0},
        {'x': 10, 'y': 0},
        {'x': 20, 'y': 10, 'type': 'arc', 'radius': 10},
        {'x': 30, 'y': 10, 'type': 'arc', 'radius': ''},
        {'x': 40, 'y': 10, 'type': 'line', 'radius': 5},
    ]
    segs = segments_from_points(points)
    assert [type(s) for s in segs] == [Line, Arc, Line, Line]
    assert segs[1].start == Point2D(10, 0)
    assert segs[1].radius == 10.0
    assert segs[2].start == segs[1].end


def test_segments_from_points_too_few():
    assert segments_from_points([]) == []
    assert segments_from_points([{'x': 1, 'y': 1}]) == []


def test_svg_arc_path():
    assert svg_arc_path(Arc((0, 0), (10, 10), 10)) == 'M 0 0 A 10 10 0 0 0 10 10'
    assert svg_arc_path(Arc((0, 0), (10, 10), -10)) == 'M 0 0 A 10 10 0 0 1 10 10'
    assert svg_arc_path(Arc((0, 0), (10, 0), 1)) == ''
