"""Triangle meshes built from swept ring pairs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from tunnelcad.axis import axis_point_3d, segment_boundaries
from tunnelcad.data import HeightAssignment, SectionRange, SweepResult
from tunnelcad.geom import Segment, Vec3

TriTuple = Tuple[Vec3, Vec3, Vec3, Vec3]

_AREA_TOL = 1e-12


def ring_pair_faces(radial_count: int, offset: int = 0, invert: bool = False) -> np.ndarray:
    """Triangle indices joining two rings of ``radial_count`` vertices.

    The first ring occupies indices ``offset .. offset+n-1`` and the second
    the following ``n``.  For each radial step ``i`` with ``a = i``,
    ``b = n + i``, ``c = n + next``, ``d = next`` the triangles are
    ``(a, b, d)`` and ``(b, c, d)``, wrapping around the ring.
    """

    n = int(radial_count)
    if n < 2:
        return np.zeros((0, 3), dtype=np.int64)
    i = np.arange(n, dtype=np.int64)
    nxt = (i + 1) % n
    a, b, c, d = i, n + i, n + nxt, nxt
    tri1 = np.stack([a, b, d], axis=1)
    tri2 = np.stack([b, c, d], axis=1)
    faces = np.empty((2 * n, 3), dtype=np.int64)
    faces[0::2] = tri1
    faces[1::2] = tri2
    if invert:
        faces = faces[:, ::-1]
    return faces + offset


@dataclass
class TubeMesh:
    """Indexed triangle mesh.

    Attributes:
        vertices: ``(N, 3)`` float array of world coordinates
        faces: ``(M, 3)`` int array of vertex indices
    """
    vertices: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=np.float64))
    faces: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=np.int64))

    @property
    def is_empty(self) -> bool:
        return len(self.faces) == 0

    def facets(self) -> Tuple[np.ndarray, np.ndarray]:
        """Unit normals ``(K, 3)`` and corners ``(K, 3, 3)`` of the
        non-degenerate faces."""

        if self.is_empty:
            return np.zeros((0, 3)), np.zeros((0, 3, 3))
        tri = self.vertices[self.faces]
        normals = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
        lengths = np.linalg.norm(normals, axis=1)
        keep = lengths > _AREA_TOL
        return normals[keep] / lengths[keep, None], tri[keep]

    def triangles(self) -> Iterator[TriTuple]:
        """Yield ``(normal, v0, v1, v2)`` per face, skipping degenerate faces."""

        normals, tri = self.facets()
        for n, (v0, v1, v2) in zip(normals.tolist(), tri.tolist()):
            yield Vec3(*n), Vec3(*v0), Vec3(*v1), Vec3(*v2)


def ring_winding(points: Sequence[Vec3], direction: Vec3) -> float:
    """Signed area of a world-space ring seen along ``direction``.

    Positive when the ring runs counter-clockwise in the right-handed
    section frame whose third axis is ``direction``.
    """

    p = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if len(p) < 3:
        return 0.0
    p = p - p.mean(axis=0)
    area = 0.5 * np.cross(p, np.roll(p, -1, axis=0)).sum(axis=0)
    return float(np.dot(area, direction))


def section_mesh(section: SectionRange, invert: bool = False) -> TubeMesh:
    """Mesh of one ring pair; empty if the rings have fewer than 3 points.

    Faces are wound so their normals point away from the axis whichever
    way the ring runs; ``invert`` reverses that.
    """

    n = section.radial_count
    if n < 3 or len(section.profile2_points) != n:
        return TubeMesh()
    # the base rule faces outward for clockwise rings
    if ring_winding(section.profile1_points, section.frame.start.direction) > 0:
        invert = not invert
    vertices = np.asarray(list(section.profile1_points) + list(section.profile2_points),
                          dtype=np.float64)
    return TubeMesh(vertices, ring_pair_faces(n, invert=invert))


def tube_mesh(result: SweepResult, invert: bool = False) -> TubeMesh:
    """Concatenate the meshes of every section in a sweep result."""

    vertex_blocks: List[np.ndarray] = []
    face_blocks: List[np.ndarray] = []
    offset = 0
    for section in result.sections:
        part = section_mesh(section, invert)
        if part.is_empty:
            continue
        vertex_blocks.append(part.vertices)
        face_blocks.append(part.faces + offset)
        offset += len(part.vertices)

    if not vertex_blocks:
        return TubeMesh()
    return TubeMesh(np.concatenate(vertex_blocks), np.concatenate(face_blocks))


def axis_polyline_3d(axis: Sequence[Segment],
                     heights: Sequence[HeightAssignment],
                     lengths: Optional[Sequence[float]] = None) -> np.ndarray:
    """World points of the axis reference line.

    Without ``lengths`` the segment end points are used.
    """

    if lengths is None:
        lengths = segment_boundaries(axis) if axis else []
    return np.asarray([axis_point_3d(axis, heights, s) for s in lengths],
                      dtype=np.float64).reshape(-1, 3)


__all__ = [
    'TubeMesh',
    'ring_pair_faces',
    'ring_winding',
    'section_mesh',
    'tube_mesh',
    'axis_polyline_3d',
]
