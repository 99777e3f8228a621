"""Angular correspondence between two differently shaped profiles.

Two sampled profiles rarely share a point count, so they cannot be blended
point by point directly.  :func:`merge_profiles_by_angle` builds a common
ordering: every point of each profile is projected along a ray from its own
profile's centroid onto the other profile, and the resulting pairs are
sorted by the polar angle (about the local origin) of the point on the
first profile.

Precondition: both profiles are star-shaped as seen from their centroids,
which is the case for practical tunnel cross-sections.  Non-convex or
multi-lobed shapes yield missing or crossed correspondences; points whose
ray misses the other profile are dropped, not reported as errors.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from tunnelcad.data import MergedPointPair, Profile
from tunnelcad.geom import Point2D, dist2d, epsilon, normalize_angle
from tunnelcad.profile import (
    DEFAULT_MAX_CHORD,
    DEFAULT_MIN_ARC_STEPS,
    compute_centroid,
    sample_profile,
)

# tolerance on the segment parameter, so rays through vertices still hit
_SEGMENT_TOL = 1e-9
_PARALLEL_TOL = 1e-12


def _cross(ax: float, ay: float, bx: float, by: float) -> float:
    return ax * by - ay * bx


def intersect_ray_with_segment(origin: Point2D, direction: Point2D,
                               p: Point2D, q: Point2D) -> Optional[float]:
    """Ray parameter ``s`` where ``origin + s*direction`` meets segment pq.

    Returns ``None`` for parallel geometry, a negative ray parameter, or a
    segment parameter outside ``[0, 1]``.
    """

    ex = q[0] - p[0]
    ey = q[1] - p[1]
    denom = _cross(direction[0], direction[1], ex, ey)
    if abs(denom) < _PARALLEL_TOL:
        return None
    wx = p[0] - origin[0]
    wy = p[1] - origin[1]
    s = _cross(wx, wy, ex, ey) / denom
    u = _cross(wx, wy, direction[0], direction[1]) / denom
    if s < 0 or u < -_SEGMENT_TOL or u > 1.0 + _SEGMENT_TOL:
        return None
    return s


def _closed_edges(polyline: Sequence[Point2D]):
    n = len(polyline)
    for i in range(n - 1):
        yield polyline[i], polyline[i + 1]
    if n > 2 and dist2d(polyline[0], polyline[-1]) > epsilon:
        yield polyline[-1], polyline[0]


def intersect_ray_with_polyline(through: Point2D,
                                polyline: Sequence[Point2D],
                                origin: Point2D = Point2D(0.0, 0.0)) -> Optional[Point2D]:
    """Nearest hit of the ray from ``origin`` through ``through`` on a closed polyline."""

    dx = through[0] - origin[0]
    dy = through[1] - origin[1]
    if dx == 0.0 and dy == 0.0:
        return None

    best: Optional[float] = None
    for p, q in _closed_edges(polyline):
        s = intersect_ray_with_segment(origin, (dx, dy), p, q)
        if s is None or s <= 0.0:
            continue
        if best is None or s < best:
            best = s
    if best is None:
        return None
    return Point2D(origin[0] + dx * best, origin[1] + dy * best)


def _polar_angle(p: Point2D) -> float:
    return normalize_angle(math.atan2(p[1], p[0]))


def merge_profiles_by_angle(a: Sequence[Point2D],
                            b: Sequence[Point2D]) -> List[MergedPointPair]:
    """Pair the points of polylines ``a`` and ``b`` by angle.

    Each returned :class:`MergedPointPair` holds the angle key in
    ``[0, 2*pi)``, the point on ``a`` (``point1``) and the point on ``b``
    (``point2``).  Pairs are sorted by angle, ascending; the sort is stable
    so pairs from ``a`` precede pairs from ``b`` at equal angles.
    """

    if not a or not b:
        return []

    center_a = compute_centroid(a)
    center_b = compute_centroid(b)
    merged: List[MergedPointPair] = []

    for p in a:
        hit = intersect_ray_with_polyline(p, b, center_a)
        if hit is not None:
            merged.append(MergedPointPair(_polar_angle(p), Point2D(*p), hit))

    for p in b:
        hit = intersect_ray_with_polyline(p, a, center_b)
        if hit is not None:
            merged.append(MergedPointPair(_polar_angle(hit), hit, Point2D(*p)))

    merged.sort(key=lambda pair: pair.angle)
    return merged


def merge_profiles(profile_a: Profile, profile_b: Profile,
                   max_chord: float = DEFAULT_MAX_CHORD,
                   min_arc_steps: int = DEFAULT_MIN_ARC_STEPS) -> List[MergedPointPair]:
    """Sample two profiles and merge them by angle."""

    return merge_profiles_by_angle(sample_profile(profile_a, max_chord, min_arc_steps),
                                   sample_profile(profile_b, max_chord, min_arc_steps))


def blend_pairs(pairs: Sequence[MergedPointPair], t: float) -> List[Point2D]:
    """Linear blend ``point1*(1-t) + point2*t`` of each merged pair."""

    s = 1.0 - t
    return [Point2D(pair.point1[0] * s + pair.point2[0] * t,
                    pair.point1[1] * s + pair.point2[1] * t)
            for pair in pairs]


__all__ = [
    'intersect_ray_with_segment',
    'intersect_ray_with_polyline',
    'merge_profiles_by_angle',
    'merge_profiles',
    'blend_pairs',
]
