"""Length-parameterized evaluation of a tunnel axis.

The axis is an ordered list of plan (x, y) segments.  Positions along it are
addressed by running length from the first segment's start.  Heights come
from a separate, linearly interpolated table and become the vertical world
coordinate: plan ``(x, y)`` maps to world ``(x, height, y)``.
"""

from __future__ import annotations

import bisect
import logging
import math
from typing import List, Optional, Sequence, Tuple

from tunnelcad.data import HeightAssignment
from tunnelcad.geom import (
    Arc,
    Line,
    Point2D,
    Segment,
    Vec3,
    arc_angle_span,
    arc_center,
    arc_start_angle,
    dist2d,
)
from tunnelcad.geometry_checks import DegenerateArcError

logger = logging.getLogger(__name__)


def _measure(seg: Segment) -> Tuple[float, Optional[Point2D], float]:
    """Return ``(length, center, span)``; ``center`` is None for lines and
    degenerate arcs."""

    if isinstance(seg, Line):
        return dist2d(seg.start, seg.end), None, 0.0
    if isinstance(seg, Arc):
        center = arc_center(seg.start, seg.end, seg.radius)
        if center is None:
            return 0.0, None, 0.0
        span = arc_angle_span(seg.start, seg.end, center, seg.radius)
        return abs(span) * abs(seg.radius), center, span
    raise TypeError(f"Unknown segment type: {type(seg).__name__}")


def axis_total_length(axis: Sequence[Segment], *, strict: bool = False) -> float:
    """Sum of segment lengths along ``axis``.

    Degenerate arcs contribute nothing.  They are logged as warnings, or
    raise :class:`DegenerateArcError` when ``strict`` is set.
    """

    total = 0.0
    for idx, seg in enumerate(axis):
        length, center, _ = _measure(seg)
        if isinstance(seg, Arc) and center is None:
            if strict:
                raise DegenerateArcError(idx, seg)
            logger.warning("degenerate arc at axis segment %d contributes no length", idx)
            continue
        total += length
    return total


def segment_boundaries(axis: Sequence[Segment]) -> List[float]:
    """Running length at the start of each segment, plus the total."""

    bounds = [0.0]
    for seg in axis:
        length, _, _ = _measure(seg)
        bounds.append(bounds[-1] + length)
    return bounds


def _locate(axis: Sequence[Segment], length: float):
    """Find the segment holding ``length``.

    Returns ``(segment, center, span, seg_length, remaining)`` or None when
    ``length`` lies beyond the end of the axis.
    """

    remaining = max(0.0, length)
    for seg in axis:
        seg_length, center, span = _measure(seg)
        if isinstance(seg, Arc) and center is None:
            continue
        if remaining <= seg_length:
            return seg, center, span, seg_length, remaining
        remaining -= seg_length
    return None


def position_at_length(axis: Sequence[Segment], length: float) -> Point2D:
    """Plan position at running ``length`` along ``axis``.

    Lengths below zero clamp to the first start point, lengths beyond the
    total clamp to the last end point.  An empty axis yields the origin.
    """

    if not axis:
        return Point2D(0.0, 0.0)

    found = _locate(axis, length)
    if found is None:
        return axis[-1].end
    seg, center, span, seg_length, remaining = found
    t = 0.0 if seg_length == 0 else remaining / seg_length

    if isinstance(seg, Line):
        return Point2D(seg.start.x + (seg.end.x - seg.start.x) * t,
                       seg.start.y + (seg.end.y - seg.start.y) * t)
    r = abs(seg.radius)
    ang = arc_start_angle(seg, center) + span * t
    return Point2D(center.x + r * math.cos(ang), center.y + r * math.sin(ang))


def tangent_at_length(axis: Sequence[Segment], length: float) -> Point2D:
    """Unit plan direction of travel at ``length``."""

    if not axis:
        return Point2D(1.0, 0.0)

    found = _locate(axis, length)
    if found is None:
        seg = axis[-1]
        seg_length, center, span = _measure(seg)
        t = 1.0
    else:
        seg, center, span, seg_length, remaining = found
        t = 0.0 if seg_length == 0 else remaining / seg_length

    if center is None:
        # lines, and degenerate arcs treated as lines
        d = dist2d(seg.start, seg.end)
        if d == 0:
            return Point2D(1.0, 0.0)
        return Point2D((seg.end.x - seg.start.x) / d, (seg.end.y - seg.start.y) / d)

    ang = arc_start_angle(seg, center) + span * t
    sign = 1.0 if seg.radius >= 0 else -1.0
    return Point2D(-sign * math.sin(ang), sign * math.cos(ang))


def height_at_length(heights: Sequence[HeightAssignment], length: float) -> float:
    """Linearly interpolated height at ``length``.

    Outside the table the nearest end value is held; an empty table gives
    0.  Among entries sharing one length the later entry wins.
    """

    if not heights:
        return 0.0

    table = sorted(heights, key=lambda h: h.length)
    lengths = [h.length for h in table]
    idx = bisect.bisect_right(lengths, length)
    if idx == 0:
        return table[0].height
    if idx >= len(table):
        return table[-1].height

    prev = table[idx - 1]
    nxt = table[idx]
    span = nxt.length - prev.length
    if span <= 0:
        return nxt.height
    t = (length - prev.length) / span
    return prev.height + (nxt.height - prev.height) * t


def axis_point_3d(axis: Sequence[Segment],
                  heights: Sequence[HeightAssignment],
                  length: float) -> Vec3:
    """World point at ``length``: plan x -> x, height -> y, plan y -> z."""

    p = position_at_length(axis, length)
    return Vec3(p.x, height_at_length(heights, length), p.y)


__all__ = [
    'axis_total_length',
    'segment_boundaries',
    'position_at_length',
    'tangent_at_length',
    'height_at_length',
    'axis_point_3d',
]
