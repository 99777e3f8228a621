import ezdxf
import pytest

from tunnelcad.data import Profile
from tunnelcad.geom import Arc, Line
from tunnelcad.io.dxf import (
    AXIS_LAYER,
    PROFILE_LAYER,
    RING_LAYER,
    add_segments,
    write_plan_dxf,
    write_profile_dxf,
)


def test_write_plan_dxf(tmp_path):
    axis = [
        Line((0, 0), (10, 0)),
        Arc((10, 0), (20, 10), 10),
        Arc((20, 10), (30, 20), -10),
    ]
    rings = [[(0, -2), (0, 2)], [(5, -2), (5, 2)], [(9, 9)]]
    path = write_plan_dxf(axis, tmp_path / 'plan.dxf', rings)
    assert path.exists()

    doc = ezdxf.readfile(str(path))
    assert doc.header['$INSUNITS'] == 6
    for name in (AXIS_LAYER, PROFILE_LAYER, RING_LAYER):
        assert name in doc.layers

    msp = doc.modelspace()
    lines = msp.query('LINE')
    arcs = msp.query('ARC')
    polylines = msp.query('LWPOLYLINE')
    assert len(lines) == 1
    assert len(arcs) == 2
    # single-point rings are not drawn
    assert len(polylines) == 2
    assert all(e.dxf.layer == AXIS_LAYER for e in list(lines) + list(arcs))
    assert all(e.dxf.layer == RING_LAYER for e in polylines)

    ccw, cw = arcs
    assert ccw.dxf.radius == pytest.approx(10.0)
    assert (ccw.dxf.center.x, ccw.dxf.center.y) == pytest.approx((10.0, 10.0))
    assert ccw.dxf.start_angle % 360 == pytest.approx(270.0)
    assert ccw.dxf.end_angle % 360 == pytest.approx(0.0, abs=1e-9)
    # clockwise arc from (20, 10) to (30, 20) around (30, 10), written CCW
    assert (cw.dxf.center.x, cw.dxf.center.y) == pytest.approx((30.0, 10.0))
    assert cw.dxf.start_angle % 360 == pytest.approx(90.0)
    assert cw.dxf.end_angle % 360 == pytest.approx(180.0)


def test_degenerate_arc_written_as_line(tmp_path):
    doc = ezdxf.new(dxfversion='R2010', setup=False)
    count = add_segments(doc.modelspace(), [Arc((0, 0), (10, 0), 1)], 'AXIS')
    assert count == 1
    assert len(doc.modelspace().query('LINE')) == 1


def test_add_segments_rejects_unknown_types():
    doc = ezdxf.new(dxfversion='R2010', setup=False)
    with pytest.raises(TypeError):
        add_segments(doc.modelspace(), [((0, 0), (1, 0))], 'AXIS')


def test_write_profile_dxf_forces_suffix(tmp_path):
    profile = Profile('horseshoe', [
        Line((-3, 0), (3, 0)),
        Arc((3, 0), (-3, 0), 3),
    ])
    path = write_profile_dxf(profile, tmp_path / 'horseshoe.txt')
    assert path.suffix == '.dxf'
    assert path.exists()

    msp = ezdxf.readfile(str(path)).modelspace()
    assert len(msp.query('LINE')) == 1
    assert len(msp.query('ARC')) == 1
    assert all(e.dxf.layer == PROFILE_LAYER for e in msp)
