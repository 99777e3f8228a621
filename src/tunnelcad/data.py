"""Data structures for tunnel descriptions and sweep results.

Profiles and assignment tables are immutable snapshots supplied by the
editor; the sweep structures are what the engine hands to a mesher or
renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Hashable, List, Mapping, NamedTuple, Optional, Tuple

from tunnelcad.geom import Point2D, Segment, Vec3


@dataclass(frozen=True)
class Profile:
    """A named cross-section shape in local coordinates.

    Local X is the lateral offset and local Y the vertical offset before
    the sweep frame is applied.

    Attributes:
        id: Stable identifier referenced by profile assignments
        segments: Ordered line/arc segments, normally forming a closed loop
        name: Display name
    """
    id: Hashable
    segments: Tuple[Segment, ...]
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'segments', tuple(self.segments))


@dataclass(frozen=True)
class ProfileAssignment:
    """Profile active at and after ``length``; ``profile_id`` may be None."""
    length: float
    profile_id: Optional[Hashable]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProfileAssignment":
        profile_id = data.get('profileId', data.get('profile_id'))
        return cls(float(data['length']), profile_id)


@dataclass(frozen=True)
class HeightAssignment:
    """Vertical offset at ``length``; linearly interpolated between entries."""
    length: float
    height: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HeightAssignment":
        return cls(float(data['length']), _as_height(data.get('height')))


def _as_height(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class MergedPointPair(NamedTuple):
    """One angular correspondence between two profiles."""
    angle: float
    point1: Point2D
    point2: Point2D


@dataclass(frozen=True)
class Frame:
    """Orthonormal sweep frame: local X, local Y (up) and travel direction."""
    x_axis: Vec3
    y_axis: Vec3
    direction: Vec3


@dataclass(frozen=True)
class SectionFrame:
    """Frames and centers used to place the two rings of a section.

    Attributes:
        center_a: 3D axis point of the first ring
        center_b: 3D axis point of the second ring
        start: Frame of the first ring (A->B direction)
        end: Frame of the second ring (B->C direction when available)
    """
    center_a: Vec3
    center_b: Vec3
    start: Frame
    end: Frame

    @property
    def x_axis(self) -> Vec3:
        return self.start.x_axis

    @property
    def y_axis(self) -> Vec3:
        return self.start.y_axis

    @property
    def direction(self) -> Vec3:
        return self.start.direction


@dataclass
class SectionRange:
    """Two matching vertex rings between consecutive sample lengths."""
    length_a: float
    length_b: float
    profile1_points: List[Vec3]
    profile2_points: List[Vec3]
    frame: SectionFrame

    @property
    def radial_count(self) -> int:
        return len(self.profile1_points)


@dataclass
class SweepResult:
    """Outcome of one full sweep pass.

    Attributes:
        sections: Ring pairs in ascending length order
        sample_lengths: Lengths at which rings were evaluated
        skipped: ``(length_a, length_b)`` ranges that produced no geometry
    """
    sections: List[SectionRange] = field(default_factory=list)
    sample_lengths: List[float] = field(default_factory=list)
    skipped: List[Tuple[float, float]] = field(default_factory=list)

    @property
    def section_count(self) -> int:
        """Number of ring pairs produced."""
        return len(self.sections)


__all__ = [
    'Profile',
    'ProfileAssignment',
    'HeightAssignment',
    'MergedPointPair',
    'Frame',
    'SectionFrame',
    'SectionRange',
    'SweepResult',
]
