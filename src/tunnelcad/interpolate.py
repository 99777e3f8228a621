"""Resolve the cross-section polyline active at any length along the axis.

Profile assignments form a step table: the profile assigned at a length
stays active until the next assignment.  Between two assignments that name
*different* profiles the shape is blended instead, by merging the two
profiles by angle and linearly interpolating each merged pair.
"""

from __future__ import annotations

import bisect
import logging
from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Union

from tunnelcad.data import HeightAssignment, Profile, ProfileAssignment
from tunnelcad.geom import Point2D
from tunnelcad.merge import blend_pairs, merge_profiles_by_angle
from tunnelcad.profile import (
    DEFAULT_MAX_CHORD,
    DEFAULT_MIN_ARC_STEPS,
    ProfileCache,
    sample_profile,
)

logger = logging.getLogger(__name__)

# shift applied to range-end queries so a boundary length resolves to the
# bracket before it
RANGE_END_EPSILON = 1e-8
# slack allowed past the axis end when cleaning assignment tables
LENGTH_TOLERANCE = 1e-6

ProfileCatalog = Union[Mapping[Hashable, Profile], Iterable[Profile]]


def profile_catalog(profiles: ProfileCatalog) -> Dict[Hashable, Profile]:
    """Return ``profiles`` as an id -> Profile mapping."""

    if isinstance(profiles, Mapping):
        return dict(profiles)
    return {p.id: p for p in profiles}


def _sampled(profile: Profile, max_chord: float, min_arc_steps: int,
             cache: Optional[ProfileCache]) -> List[Point2D]:
    if cache is not None:
        return cache.sample(profile, max_chord, min_arc_steps)
    return sample_profile(profile, max_chord, min_arc_steps)


def bracket_assignments(length: float, assignments: Sequence[ProfileAssignment]):
    """Return the ``(prev, next)`` assignments around ``length``.

    ``assignments`` must be sorted by length.  Below the first entry or at
    or beyond the last one both members are the boundary entry.  Among
    entries at the same length the later one is used as ``prev``.
    """

    lengths = [a.length for a in assignments]
    idx = bisect.bisect_right(lengths, length)
    if idx == 0:
        return assignments[0], assignments[0]
    if idx >= len(assignments):
        return assignments[-1], assignments[-1]
    return assignments[idx - 1], assignments[idx]


def profile_at_length(length: float,
                      assignments: Sequence[ProfileAssignment],
                      profiles: ProfileCatalog,
                      max_chord: float = DEFAULT_MAX_CHORD,
                      min_arc_steps: int = DEFAULT_MIN_ARC_STEPS,
                      is_range_start: bool = True,
                      cache: Optional[ProfileCache] = None) -> Optional[List[Point2D]]:
    """Local profile polyline at ``length``.

    Args:
        length: Running length along the axis
        assignments: Profile assignment table (sorted here, not mutated)
        profiles: Profile catalog, as a mapping or a sequence of profiles
        max_chord: Maximum chord length when sampling arcs
        min_arc_steps: Minimum number of steps per arc
        is_range_start: False when resolving the far end of a sweep range;
            the length is then nudged down so that a length exactly on an
            assignment belongs to the bracket before it
        cache: Optional sampled-polyline memo for the current pass

    Returns:
        The sampled (or blended) polyline, or None when an assignment names
        a missing profile or the blend finds no correspondences.

    Exactly on an assignment's length the default ``is_range_start=True``
    resolves to the bracket that starts there, i.e. its ``t = 0`` blend,
    not the profile named by the assignment on its own.  The clamped
    value before the first entry matches ``is_range_start=False`` at the
    first entry's length, and so does the value at the last entry.
    """

    if not assignments:
        return None

    catalog = profile_catalog(profiles)
    table = sorted(assignments, key=lambda a: a.length)
    query = length if is_range_start else length - RANGE_END_EPSILON
    prev, nxt = bracket_assignments(query, table)

    prof1 = catalog.get(prev.profile_id) if prev.profile_id is not None else None
    if prof1 is None:
        logger.debug("no profile %r for assignment at %g", prev.profile_id, prev.length)
        return None

    if prev.profile_id == nxt.profile_id or nxt.length == prev.length:
        return _sampled(prof1, max_chord, min_arc_steps, cache)

    prof2 = catalog.get(nxt.profile_id) if nxt.profile_id is not None else None
    if prof2 is None:
        logger.debug("no profile %r for assignment at %g", nxt.profile_id, nxt.length)
        return None

    t = (query - prev.length) / (nxt.length - prev.length)
    t = min(1.0, max(0.0, t))

    merged = merge_profiles_by_angle(_sampled(prof1, max_chord, min_arc_steps, cache),
                                     _sampled(prof2, max_chord, min_arc_steps, cache))
    if not merged:
        logger.debug("profiles %r and %r share no angular correspondence",
                     prev.profile_id, nxt.profile_id)
        return None
    return blend_pairs(merged, t)


def clean_profile_assignments(assignments: Iterable[ProfileAssignment],
                              profiles: ProfileCatalog,
                              total_length: float) -> List[ProfileAssignment]:
    """Drop out-of-range or dangling assignments and sort by length.

    Assignments with a ``None`` profile id are kept; they mark stretches
    without a cross-section.
    """

    valid_ids = set(profile_catalog(profiles))
    kept = [a for a in assignments
            if (a.profile_id is None or a.profile_id in valid_ids)
            and 0 <= a.length <= total_length + LENGTH_TOLERANCE]
    return sorted(kept, key=lambda a: a.length)


def clean_height_assignments(heights: Iterable[HeightAssignment],
                             total_length: float) -> List[HeightAssignment]:
    """Drop out-of-range height entries and sort by length."""

    kept = []
    for h in heights:
        if not 0 <= h.length <= total_length + LENGTH_TOLERANCE:
            continue
        try:
            height = float(h.height)
        except (TypeError, ValueError):
            height = 0.0
        kept.append(HeightAssignment(h.length, height))
    return sorted(kept, key=lambda h: h.length)


__all__ = [
    'RANGE_END_EPSILON',
    'LENGTH_TOLERANCE',
    'ProfileCatalog',
    'profile_catalog',
    'bracket_assignments',
    'profile_at_length',
    'clean_profile_assignments',
    'clean_height_assignments',
]
