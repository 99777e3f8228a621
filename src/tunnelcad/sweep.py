"""Place profile rings along the axis in world space.

World coordinates are y-up: the axis plan lies in the x-z plane and heights
are y.  Each cross-section is placed with a frame perpendicular to the
local travel direction whose local Y always points toward world up, so
consecutive rings never flip upside down as the axis turns.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from tunnelcad.axis import (
    axis_point_3d,
    axis_total_length,
    segment_boundaries,
    tangent_at_length,
)
from tunnelcad.config import SweepOptions
from tunnelcad.data import (
    Frame,
    HeightAssignment,
    ProfileAssignment,
    SectionFrame,
    SectionRange,
    SweepResult,
)
from tunnelcad.geom import (
    Arc,
    Point2D,
    Segment,
    Vec3,
    arc_angle_span,
    arc_center,
)
from tunnelcad.interpolate import ProfileCatalog, profile_at_length, profile_catalog
from tunnelcad.profile import DEFAULT_MAX_CHORD, DEFAULT_MIN_ARC_STEPS, ProfileCache

logger = logging.getLogger(__name__)

# below this horizontal magnitude a direction counts as vertical
_VERTICAL_TOL = 1e-9
# sample lengths closer than this are merged
SAMPLE_TOLERANCE = 1e-6
DEFAULT_ARC_STEP = 10.0


def _sub(a: Vec3, b: Vec3) -> Vec3:
    return Vec3(a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _cross(a: Vec3, b: Vec3) -> Vec3:
    return Vec3(a[1] * b[2] - a[2] * b[1],
                a[2] * b[0] - a[0] * b[2],
                a[0] * b[1] - a[1] * b[0])


def _norm(v: Vec3) -> float:
    return math.sqrt(v[0] ** 2 + v[1] ** 2 + v[2] ** 2)


def _normalize(v: Vec3) -> Optional[Vec3]:
    length = _norm(v)
    if length == 0.0:
        return None
    return Vec3(v[0] / length, v[1] / length, v[2] / length)


def frame_from_direction(direction: Vec3) -> Frame:
    """Build an up-oriented orthonormal frame around ``direction``.

    Raises:
        ValueError: If ``direction`` has zero length
    """

    d = _normalize(direction)
    if d is None:
        raise ValueError("cannot build a frame from a zero-length direction")

    horizontal = Vec3(-d.z, 0.0, d.x)
    if math.hypot(horizontal.x, horizontal.z) < _VERTICAL_TOL:
        x_axis = Vec3(1.0, 0.0, 0.0)
        y_axis = _normalize(_cross(d, x_axis))
    else:
        x_axis = _normalize(horizontal)
        y_axis = _normalize(_cross(d, x_axis))

    if y_axis.y < 0:
        x_axis = Vec3(-x_axis.x, -x_axis.y, -x_axis.z)
        y_axis = Vec3(-y_axis.x, -y_axis.y, -y_axis.z)
    return Frame(x_axis, y_axis, d)


def perpendicular_frame(p1: Vec3, p2: Vec3) -> Frame:
    """Frame perpendicular to the travel direction from ``p1`` to ``p2``."""

    return frame_from_direction(_sub(p2, p1))


def _tangent_3d(axis: Sequence[Segment], length: float) -> Vec3:
    t = tangent_at_length(axis, length)
    return Vec3(t.x, 0.0, t.y)


def _frame_between(axis: Sequence[Segment], p1: Vec3, p2: Vec3, length: float) -> Frame:
    if _norm(_sub(p2, p1)) == 0.0:
        return frame_from_direction(_tangent_3d(axis, length))
    return perpendicular_frame(p1, p2)


def place_ring(points: Sequence[Point2D], center: Vec3, frame: Frame) -> List[Vec3]:
    """Map local ``(x, y)`` points to ``center + x_axis*x + y_axis*y``."""

    xa = frame.x_axis
    ya = frame.y_axis
    return [Vec3(center.x + xa.x * p[0] + ya.x * p[1],
                 center.y + xa.y * p[0] + ya.y * p[1],
                 center.z + xa.z * p[0] + ya.z * p[1])
            for p in points]


def build_section_range(axis: Sequence[Segment],
                        heights: Sequence[HeightAssignment],
                        assignments: Sequence[ProfileAssignment],
                        profiles: ProfileCatalog,
                        length_a: float,
                        length_b: float,
                        length_c: Optional[float] = None,
                        *,
                        max_chord: float = DEFAULT_MAX_CHORD,
                        min_arc_steps: int = DEFAULT_MIN_ARC_STEPS,
                        cache: Optional[ProfileCache] = None) -> Optional[SectionRange]:
    """Build the pair of world-space rings between ``length_a`` and ``length_b``.

    The first ring uses the frame of the A->B direction.  When ``length_c``
    is given the second ring uses the B->C direction instead, which keeps
    it aligned with the first ring of the following section.

    Returns None when either polyline cannot be resolved or the two rings
    would have different point counts.
    """

    center_a = axis_point_3d(axis, heights, length_a)
    center_b = axis_point_3d(axis, heights, length_b)
    start = _frame_between(axis, center_a, center_b, length_a)
    end = start
    if length_c is not None:
        center_c = axis_point_3d(axis, heights, length_c)
        end = _frame_between(axis, center_b, center_c, length_b)

    local1 = profile_at_length(length_a, assignments, profiles, max_chord,
                               min_arc_steps, True, cache)
    local2 = profile_at_length(length_b, assignments, profiles, max_chord,
                               min_arc_steps, False, cache)
    if local1 is None or local2 is None:
        return None
    if len(local1) != len(local2):
        logger.debug("ring point counts differ between %g (%d) and %g (%d)",
                     length_a, len(local1), length_b, len(local2))
        return None

    return SectionRange(
        length_a=length_a,
        length_b=length_b,
        profile1_points=place_ring(local1, center_a, start),
        profile2_points=place_ring(local2, center_b, end),
        frame=SectionFrame(center_a, center_b, start, end),
    )


def collect_sample_lengths(axis: Sequence[Segment],
                           heights: Sequence[HeightAssignment],
                           assignments: Sequence[ProfileAssignment],
                           arc_step: float = DEFAULT_ARC_STEP,
                           axis_arc_step: Optional[float] = None) -> List[float]:
    """Lengths at which rings are evaluated, ascending and de-duplicated.

    Includes 0, the total length, every segment boundary, every height and
    profile assignment (clamped into the axis), and interior points on each
    axis arc spaced at most ``arc_step`` apart in length and, if
    ``axis_arc_step`` is given, at most that many degrees apart.
    """

    total = axis_total_length(axis)
    bounds = segment_boundaries(axis)
    lengths = [0.0, total]
    lengths.extend(bounds)

    for seg, seg_start, seg_end in zip(axis, bounds, bounds[1:]):
        if not isinstance(seg, Arc):
            continue
        seg_len = seg_end - seg_start
        if seg_len <= 0:
            continue
        steps = 1
        if arc_step and arc_step > 0:
            steps = max(steps, int(math.ceil(seg_len / arc_step)))
        if axis_arc_step and axis_arc_step > 0:
            center = arc_center(seg.start, seg.end, seg.radius)
            span = abs(arc_angle_span(seg.start, seg.end, center, seg.radius))
            steps = max(steps, int(math.ceil(math.degrees(span) / axis_arc_step)))
        for i in range(1, steps):
            lengths.append(seg_start + seg_len * i / steps)

    for entry in list(heights) + list(assignments):
        lengths.append(min(total, max(0.0, entry.length)))

    result: List[float] = []
    for value in sorted(lengths):
        if not result or value - result[-1] > SAMPLE_TOLERANCE:
            result.append(value)
    return result


def sweep(axis: Sequence[Segment],
          heights: Sequence[HeightAssignment],
          assignments: Sequence[ProfileAssignment],
          profiles: ProfileCatalog,
          options: Optional[SweepOptions] = None) -> SweepResult:
    """Evaluate ring pairs for every consecutive pair of sample lengths.

    Ranges that cannot be built are recorded in ``skipped`` and leave a gap
    in the tube; they never stop the pass.
    """

    if options is None:
        options = SweepOptions()

    catalog = profile_catalog(profiles)
    cache = ProfileCache()
    lengths = collect_sample_lengths(axis, heights, assignments,
                                     options.arc_step, options.axis_arc_step)
    result = SweepResult(sample_lengths=lengths)

    for i in range(len(lengths) - 1):
        length_c = lengths[i + 2] if i + 2 < len(lengths) else None
        section = build_section_range(axis, heights, assignments, catalog,
                                      lengths[i], lengths[i + 1], length_c,
                                      max_chord=options.max_chord,
                                      min_arc_steps=options.min_arc_steps,
                                      cache=cache)
        if section is None:
            result.skipped.append((lengths[i], lengths[i + 1]))
            continue
        result.sections.append(section)

    if result.skipped:
        logger.info("sweep skipped %d of %d ranges", len(result.skipped),
                    max(0, len(lengths) - 1))
    return result


__all__ = [
    'SAMPLE_TOLERANCE',
    'DEFAULT_ARC_STEP',
    'frame_from_direction',
    'perpendicular_frame',
    'place_ring',
    'build_section_range',
    'collect_sample_lengths',
    'sweep',
]
