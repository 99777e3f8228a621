"""Validation helpers for tunnelcad axes and profiles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from tunnelcad.geom import Arc, Point2D, Segment, arc_center, dist2d, epsilon


class DegenerateArcError(ValueError):
    """Raised when an arc has no center and strict validation is requested."""

    def __init__(self, index: int, arc: Arc):
        self.index = index
        self.arc = arc
        super().__init__(
            f"degenerate arc at segment {index}: radius {arc.radius} cannot "
            f"span chord from {tuple(arc.start)} to {tuple(arc.end)}"
        )


def is_degenerate(seg: Segment) -> bool:
    """Return ``True`` for an arc whose center cannot be computed."""

    if isinstance(seg, Arc):
        return arc_center(seg.start, seg.end, seg.radius) is None
    return False


def degenerate_arcs(segments: Sequence[Segment]) -> List[int]:
    """Indices of the degenerate arcs in ``segments``."""

    return [idx for idx, seg in enumerate(segments) if is_degenerate(seg)]


def require_valid_arcs(segments: Sequence[Segment]) -> None:
    """Raise :class:`DegenerateArcError` for the first degenerate arc."""

    for idx, seg in enumerate(segments):
        if is_degenerate(seg):
            raise DegenerateArcError(idx, seg)


def check_segments(segments: Sequence[Segment], tol: float = epsilon) -> "CheckResult":
    """Report degenerate arcs and gaps between consecutive segments."""

    warnings: List[str] = []
    for idx in degenerate_arcs(segments):
        warnings.append(f'segment {idx}: degenerate arc')
    for idx in range(1, len(segments)):
        gap = dist2d(segments[idx - 1].end, segments[idx].start)
        if gap > tol:
            warnings.append(f'segment {idx}: starts {gap:.6g} away from previous end')
    return CheckResult(not warnings, warnings)


def check_profile_closed(points: Sequence[Point2D], tol: float = epsilon) -> "CheckResult":
    if not points:
        return CheckResult(False, ['empty polyline'])
    gap = dist2d(points[0], points[-1])
    if gap > tol:
        return CheckResult(False, [f'polyline open by {gap:.6g}'])
    return CheckResult(True, [])


@dataclass
class CheckResult:
    ok: bool
    warnings: List[str]

    def __bool__(self) -> bool:
        return self.ok


__all__ = [
    'CheckResult',
    'DegenerateArcError',
    'is_degenerate',
    'degenerate_arcs',
    'require_valid_arcs',
    'check_segments',
    'check_profile_closed',
]
