import numpy as np
import pytest

from tunnelcad.data import HeightAssignment, Profile, ProfileAssignment
from tunnelcad.geom import Arc, Line
from tunnelcad.mesh import (
    TubeMesh,
    axis_polyline_3d,
    ring_pair_faces,
    ring_winding,
    section_mesh,
    tube_mesh,
)
from tunnelcad.sweep import sweep


def _square(pid, h):
    return Profile(pid, [
        Line((-h, -h), (h, -h)),
        Line((h, -h), (h, h)),
        Line((h, h), (-h, h)),
        Line((-h, h), (-h, -h)),
    ])


@pytest.fixture
def result():
    axis = [Line((0, 0), (10, 0)), Arc((10, 0), (20, 10), 10)]
    return sweep(axis, [HeightAssignment(0, 1)], [ProfileAssignment(0, 'sq')],
                 [_square('sq', 2)])


def test_ring_pair_faces():
    faces = ring_pair_faces(4)
    assert faces.shape == (8, 3)
    assert faces[0].tolist() == [0, 4, 1]
    assert faces[1].tolist() == [4, 5, 1]
    # wraps around to the first column
    assert faces[6].tolist() == [3, 7, 0]
    assert faces[7].tolist() == [7, 4, 0]


def test_ring_pair_faces_invert_and_offset():
    faces = ring_pair_faces(3, offset=10, invert=True)
    assert faces[0].tolist() == [11, 13, 10]
    assert faces.min() == 10
    assert faces.max() == 15


def test_ring_pair_faces_too_few():
    assert ring_pair_faces(1).shape == (0, 3)


def test_section_mesh(result):
    section = result.sections[0]
    mesh = section_mesh(section)
    n = section.radial_count
    assert mesh.vertices.shape == (2 * n, 3)
    assert mesh.faces.shape == (2 * n, 3)


def test_tube_mesh_offsets(result):
    mesh = tube_mesh(result)
    total = sum(s.radial_count for s in result.sections)
    assert len(mesh.vertices) == 2 * total
    assert len(mesh.faces) == 2 * total
    assert mesh.faces.max() == len(mesh.vertices) - 1
    assert not mesh.is_empty


def test_tube_mesh_empty():
    mesh = tube_mesh(sweep([], [], [], []))
    assert mesh.is_empty
    assert list(mesh.triangles()) == []


def test_triangles_have_unit_normals(result):
    tris = list(tube_mesh(result).triangles())
    assert tris
    for normal, v0, v1, v2 in tris:
        assert np.linalg.norm(normal) == pytest.approx(1.0)


def test_triangles_skip_degenerate_faces():
    vertices = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [2, 0, 0]], dtype=float)
    faces = np.array([[0, 1, 2], [0, 1, 3]])
    tris = list(TubeMesh(vertices, faces).triangles())
    assert len(tris) == 1
    assert tris[0][0] == pytest.approx((0.0, 0.0, 1.0))


def test_invert_flips_normals(result):
    section = result.sections[0]
    normal = next(section_mesh(section).triangles())[0]
    flipped = next(section_mesh(section, invert=True).triangles())[0]
    assert flipped == pytest.approx(tuple(-c for c in normal))


def test_axis_polyline_3d():
    axis = [Line((0, 0), (10, 0)), Line((10, 0), (10, 5))]
    heights = [HeightAssignment(0, 0), HeightAssignment(15, 3)]
    pts = axis_polyline_3d(axis, heights)
    assert pts.shape == (3, 3)
    assert pts[1].tolist() == pytest.approx([10.0, 2.0, 0.0])
    assert pts[2].tolist() == pytest.approx([10.0, 3.0, 5.0])
    assert axis_polyline_3d([], []).shape == (0, 3)


# ----------------------------------------------------------------------
# orientation

def _circle(pid, r):
    return Profile(pid, [Arc((r, 0), (-r, 0), r), Arc((-r, 0), (r, 0), r)])


def _clockwise_rect(pid, hx, hy):
    return Profile(pid, [
        Line((-hx, -hy), (-hx, hy)),
        Line((-hx, hy), (hx, hy)),
        Line((hx, hy), (hx, -hy)),
        Line((hx, -hy), (-hx, -hy)),
    ])


def _radial_dots(mesh):
    """Dot products of each facet normal with the direction away from an
    axis lying on the world x axis."""
    normals, corners = mesh.facets()
    radial = corners.mean(axis=1)
    radial[:, 0] = 0.0
    return np.einsum('ij,ij->i', normals, radial)


def test_ring_winding_sign():
    ring = [(1, -1, 0), (1, 1, 0), (-1, 1, 0), (-1, -1, 0)]
    assert ring_winding(ring, (0, 0, 1)) == pytest.approx(4.0)
    assert ring_winding(ring[::-1], (0, 0, 1)) == pytest.approx(-4.0)
    assert ring_winding(ring, (0, 0, -1)) == pytest.approx(-4.0)
    assert ring_winding(ring[:2], (0, 0, 1)) == 0.0


@pytest.mark.parametrize('profile', [_circle('p', 2), _clockwise_rect('p', 2, 1)])
def test_normals_point_away_from_axis(profile):
    result = sweep([Line((0, 0), (10, 0))], [], [ProfileAssignment(0, 'p')], [profile])
    dots = _radial_dots(tube_mesh(result))
    assert len(dots) > 0
    assert (dots > 0).all()


def test_blended_and_plain_sections_both_face_outward():
    profiles = [_circle('round', 2), _clockwise_rect('box', 2, 1)]
    assignments = [ProfileAssignment(0, 'round'), ProfileAssignment(10, 'box')]
    result = sweep([Line((0, 0), (20, 0))], [], assignments, profiles)
    windings = [ring_winding(s.profile1_points, s.frame.start.direction)
                for s in result.sections]
    # blended rings are ordered by angle, the plain box ring runs clockwise
    assert any(w > 0 for w in windings)
    assert any(w < 0 for w in windings)
    assert (_radial_dots(tube_mesh(result)) > 0).all()


def test_invert_points_normals_toward_axis():
    result = sweep([Line((0, 0), (10, 0))], [], [ProfileAssignment(0, 'p')],
                   [_circle('p', 2)])
    dots = _radial_dots(tube_mesh(result, invert=True))
    assert len(dots) > 0
    assert (dots < 0).all()
