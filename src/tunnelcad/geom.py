"""Planar primitives and circular-arc math for tunnelcad.

Axes and profiles are both described as ordered lists of 2D segments.  A
segment is either a :class:`Line` or an :class:`Arc`; the set is closed, and
every consumer in the package dispatches on exactly these two variants.

Arcs are given by their end points and a *signed* radius: a positive radius
sweeps counter-clockwise from ``start`` to ``end``, a negative radius sweeps
clockwise.  When ``|radius|`` is smaller than half the chord no circle passes
through both points and the arc is degenerate; :func:`arc_center` returns
``None`` for it and callers substitute a straight line or skip the length.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, NamedTuple, Optional, Union

pi2 = 2.0 * math.pi

# closure / coincidence tolerance in design units
epsilon = 1e-6


class Point2D(NamedTuple):
    x: float
    y: float


class Vec3(NamedTuple):
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class Line:
    """Straight segment from ``start`` to ``end``."""

    start: Point2D
    end: Point2D

    def __post_init__(self):
        object.__setattr__(self, 'start', point2d(self.start))
        object.__setattr__(self, 'end', point2d(self.end))


@dataclass(frozen=True)
class Arc:
    """Circular arc from ``start`` to ``end``.

    Attributes:
        start: First point on the arc
        end: Last point on the arc
        radius: Signed radius; positive = CCW sweep, negative = CW sweep
    """

    start: Point2D
    end: Point2D
    radius: float

    def __post_init__(self):
        object.__setattr__(self, 'start', point2d(self.start))
        object.__setattr__(self, 'end', point2d(self.end))
        object.__setattr__(self, 'radius', float(self.radius))


Segment = Union[Line, Arc]


def point2d(x: Any, y: Any = None) -> Point2D:
    """Coerce ``(x, y)``, a pair, or an ``{x, y}`` mapping into a Point2D."""

    if y is not None:
        return Point2D(float(x), float(y))
    if isinstance(x, Mapping):
        return Point2D(float(x['x']), float(x['y']))
    return Point2D(float(x[0]), float(x[1]))


def dist2d(p1: Point2D, p2: Point2D) -> float:
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])


def normalize_angle(angle: float) -> float:
    """Map an angle in radians onto ``[0, 2*pi)``."""

    a = math.fmod(angle, pi2)
    if a < 0.0:
        a += pi2
    # fmod of a tiny negative value can round up to exactly 2*pi
    if a >= pi2:
        a = 0.0
    return a


## arc primitives
##------------------------------------------------------------

def arc_center(start: Point2D, end: Point2D, radius: float) -> Optional[Point2D]:
    """Return the center of the circle of signed ``radius`` through both points.

    The center lies on the left of the chord for a positive radius and on
    the right for a negative one.  Returns ``None`` when ``radius`` is zero,
    the points coincide, or the chord is longer than the diameter.
    """

    r = abs(radius)
    if not r:
        return None

    dx = end[0] - start[0]
    dy = end[1] - start[1]
    d = math.hypot(dx, dy)
    if d == 0.0 or d > 2.0 * r:
        return None

    mx = (start[0] + end[0]) / 2.0
    my = (start[1] + end[1]) / 2.0
    h = math.sqrt(max(0.0, r * r - (d / 2.0) ** 2))

    # chord direction rotated by +90 degrees
    px = -dy / d
    py = dx / d
    sign = 1.0 if radius >= 0 else -1.0
    return Point2D(mx + sign * h * px, my + sign * h * py)


def arc_angle_span(start: Point2D, end: Point2D, center: Point2D, radius: float) -> float:
    """Signed sweep angle from ``start`` to ``end`` around ``center``.

    A non-negative radius gives a counter-clockwise span in ``[0, 2*pi)``, a
    negative radius a clockwise span in ``(-2*pi, 0]``.
    """

    a0 = math.atan2(start[1] - center[1], start[0] - center[0])
    a1 = math.atan2(end[1] - center[1], end[0] - center[0])
    span = a1 - a0
    if radius >= 0:
        if span < 0:
            span += pi2
    else:
        if span > 0:
            span -= pi2
    return span


def arc_start_angle(arc: Arc, center: Point2D) -> float:
    return math.atan2(arc.start[1] - center[1], arc.start[0] - center[0])


def arc_length(arc: Arc) -> Optional[float]:
    """Return the length of ``arc`` or ``None`` if it is degenerate."""

    center = arc_center(arc.start, arc.end, arc.radius)
    if center is None:
        return None
    span = arc_angle_span(arc.start, arc.end, center, arc.radius)
    return abs(span) * abs(arc.radius)


def sample_arc(arc: Arc, center: Point2D, u: float) -> Point2D:
    """Point at fraction ``u`` of the sweep of a non-degenerate ``arc``."""

    r = abs(arc.radius)
    span = arc_angle_span(arc.start, arc.end, center, arc.radius)
    ang = arc_start_angle(arc, center) + span * u
    return Point2D(center[0] + r * math.cos(ang), center[1] + r * math.sin(ang))


def segment_length(seg: Segment) -> Optional[float]:
    """Length of a segment; ``None`` for a degenerate arc."""

    if isinstance(seg, Line):
        return dist2d(seg.start, seg.end)
    if isinstance(seg, Arc):
        return arc_length(seg)
    raise TypeError(f"Unknown segment type: {type(seg).__name__}")


## construction helpers
##------------------------------------------------------------

def segment_from_dict(data: Mapping[str, Any]) -> Segment:
    """Build a segment from a ``{type, start, end, radius}`` mapping."""

    seg_type = data.get('type', 'line')
    start = point2d(data['start'])
    end = point2d(data['end'])
    if seg_type == 'line':
        return Line(start, end)
    if seg_type == 'arc':
        return Arc(start, end, float(data['radius']))
    raise ValueError(f"Unknown segment type: {seg_type}")


def segment_to_dict(seg: Segment) -> dict:
    if isinstance(seg, Line):
        return {'type': 'line',
                'start': {'x': seg.start.x, 'y': seg.start.y},
                'end': {'x': seg.end.x, 'y': seg.end.y}}
    if isinstance(seg, Arc):
        return {'type': 'arc',
                'start': {'x': seg.start.x, 'y': seg.start.y},
                'end': {'x': seg.end.x, 'y': seg.end.y},
                'radius': seg.radius}
    raise TypeError(f"Unknown segment type: {type(seg).__name__}")


def segments_from_points(points: Iterable[Mapping[str, Any]]) -> List[Segment]:
    """Turn an editor point list into contiguous segments.

    Each point after the first closes a segment that starts at the previous
    point.  A point with ``type == 'arc'`` and a usable non-zero ``radius``
    produces an :class:`Arc`; anything else produces a :class:`Line`.  Fewer
    than two points give an empty list.
    """

    pts = list(points)
    segments: List[Segment] = []
    for prev, curr in zip(pts, pts[1:]):
        start = point2d(prev['x'], prev['y'])
        end = point2d(curr['x'], curr['y'])
        radius = _parse_radius(curr.get('radius'))
        if curr.get('type', 'line') == 'arc' and radius:
            segments.append(Arc(start, end, radius))
        else:
            segments.append(Line(start, end))
    return segments


def _parse_radius(value: Any) -> float:
    if value is None or value == '':
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def svg_arc_path(arc: Arc) -> str:
    """SVG path data (``M ... A ...``) for ``arc``; empty if degenerate."""

    center = arc_center(arc.start, arc.end, arc.radius)
    if center is None:
        return ''
    span = arc_angle_span(arc.start, arc.end, center, arc.radius)
    large_arc = 1 if abs(span) > math.pi else 0
    sweep = 0 if arc.radius >= 0 else 1
    r = abs(arc.radius)
    return (f"M {arc.start.x:g} {arc.start.y:g} "
            f"A {r:g} {r:g} 0 {large_arc} {sweep} {arc.end.x:g} {arc.end.y:g}")


__all__ = [
    'pi2',
    'epsilon',
    'Point2D',
    'Vec3',
    'Line',
    'Arc',
    'Segment',
    'point2d',
    'dist2d',
    'normalize_angle',
    'arc_center',
    'arc_angle_span',
    'arc_start_angle',
    'arc_length',
    'sample_arc',
    'segment_length',
    'segment_from_dict',
    'segment_to_dict',
    'segments_from_points',
    'svg_arc_path',
]
