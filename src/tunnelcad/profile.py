"""Dense polyline sampling of cross-section profiles."""

from __future__ import annotations

import logging
import math
from typing import Dict, Hashable, List, Sequence, Tuple, Union

from tunnelcad.data import Profile
from tunnelcad.geom import (
    Arc,
    Line,
    Point2D,
    Segment,
    arc_angle_span,
    arc_center,
    arc_start_angle,
    dist2d,
    epsilon,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHORD = 5.0
DEFAULT_MIN_ARC_STEPS = 4


def arc_steps(arc_len: float, max_chord: float, min_arc_steps: int) -> int:
    """Number of sample steps for an arc of length ``arc_len``."""

    steps = int(min_arc_steps)
    if max_chord > 0:
        steps = max(steps, int(math.ceil(arc_len / max_chord)))
    return max(steps, 1)


def _emit(points: List[Point2D], p: Point2D) -> None:
    points.append(Point2D(float(p[0]), float(p[1])))


def sample_profile(profile: Union[Profile, Sequence[Segment]],
                   max_chord: float = DEFAULT_MAX_CHORD,
                   min_arc_steps: int = DEFAULT_MIN_ARC_STEPS) -> List[Point2D]:
    """Sample a profile into a closed polyline.

    Line end points are emitted verbatim.  Each arc contributes
    ``max(min_arc_steps, ceil(arc_length / max_chord))`` points evenly spaced
    in angle, not counting its start.  Degenerate arcs contribute only their
    end point.  If the result does not return to its first point within
    ``epsilon`` the first point is appended again.
    """

    segments = profile.segments if isinstance(profile, Profile) else profile
    points: List[Point2D] = []

    for idx, seg in enumerate(segments):
        if not points or dist2d(points[-1], seg.start) > epsilon:
            _emit(points, seg.start)

        if isinstance(seg, Line):
            _emit(points, seg.end)
        elif isinstance(seg, Arc):
            center = arc_center(seg.start, seg.end, seg.radius)
            if center is None:
                logger.debug("degenerate arc at profile segment %d sampled as a line", idx)
                _emit(points, seg.end)
                continue
            r = abs(seg.radius)
            span = arc_angle_span(seg.start, seg.end, center, seg.radius)
            a0 = arc_start_angle(seg, center)
            steps = arc_steps(abs(span) * r, max_chord, min_arc_steps)
            for i in range(1, steps):
                ang = a0 + span * i / steps
                points.append(Point2D(center.x + r * math.cos(ang),
                                      center.y + r * math.sin(ang)))
            _emit(points, seg.end)
        else:
            raise TypeError(f"Unknown segment type: {type(seg).__name__}")

    if points and dist2d(points[0], points[-1]) > epsilon:
        points.append(points[0])
    return points


def compute_centroid(points: Sequence[Point2D]) -> Point2D:
    """Arithmetic mean of ``points``; the origin for an empty sequence."""

    if not points:
        return Point2D(0.0, 0.0)
    n = len(points)
    return Point2D(sum(p[0] for p in points) / n, sum(p[1] for p in points) / n)


class ProfileCache:
    """Memo of sampled polylines keyed by profile id and sampling options.

    Entries are never evicted, so create one cache per recomputation pass;
    a profile edited between passes must not be served from an old cache.
    """

    def __init__(self):
        self._entries: Dict[Tuple[Hashable, float, int], List[Point2D]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def sample(self, profile: Profile, max_chord: float, min_arc_steps: int) -> List[Point2D]:
        key = (profile.id, max_chord, min_arc_steps)
        if key not in self._entries:
            self._entries[key] = sample_profile(profile, max_chord, min_arc_steps)
        return list(self._entries[key])

    def clear(self) -> None:
        self._entries.clear()


__all__ = [
    'DEFAULT_MAX_CHORD',
    'DEFAULT_MIN_ARC_STEPS',
    'arc_steps',
    'sample_profile',
    'compute_centroid',
    'ProfileCache',
]
