"""DXF drawings of tunnel axes and profiles using ezdxf.

Lines become LINE entities and arcs ARC entities.  DXF arcs always run
counter-clockwise, so clockwise (negative radius) arcs are written with
their start and end angles swapped.  Degenerate arcs are drawn as lines.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Iterable, Optional, Sequence

import ezdxf

from tunnelcad.data import Profile
from tunnelcad.geom import Arc, Line, Point2D, Segment, arc_center

AXIS_LAYER = 'AXIS'
PROFILE_LAYER = 'PROFILE'
RING_LAYER = 'RINGS'


def _new_document():
    # setup=False skips default blocks some CAD programs reject
    doc = ezdxf.new(dxfversion='R2010', setup=False)
    doc.header['$MEASUREMENT'] = 1  # metric
    doc.header['$INSUNITS'] = 6  # meters
    doc.layers.new(AXIS_LAYER, dxfattribs={'color': 1})  # red
    doc.layers.new(PROFILE_LAYER, dxfattribs={'color': 7})  # white
    doc.layers.new(RING_LAYER, dxfattribs={'color': 4})  # aqua
    return doc


def add_segments(msp, segments: Iterable[Segment], layer: str) -> int:
    """Add ``segments`` to a modelspace; returns the number of entities."""

    count = 0
    for seg in segments:
        if isinstance(seg, Arc):
            center = arc_center(seg.start, seg.end, seg.radius)
            if center is not None:
                a0 = math.degrees(math.atan2(seg.start.y - center.y, seg.start.x - center.x))
                a1 = math.degrees(math.atan2(seg.end.y - center.y, seg.end.x - center.x))
                if seg.radius < 0:
                    a0, a1 = a1, a0
                msp.add_arc((center.x, center.y), abs(seg.radius), a0, a1,
                            dxfattribs={'layer': layer})
                count += 1
                continue
        elif not isinstance(seg, Line):
            raise TypeError(f"Unknown segment type: {type(seg).__name__}")
        msp.add_line((seg.start.x, seg.start.y), (seg.end.x, seg.end.y),
                     dxfattribs={'layer': layer})
        count += 1
    return count


def write_plan_dxf(axis: Sequence[Segment], output_path: Path | str,
                   rings: Optional[Sequence[Sequence[Point2D]]] = None) -> Path:
    """Write the plan view of ``axis`` to ``output_path``.

    ``rings`` optionally adds plan-projected polylines (e.g. ring footprints)
    on their own layer.
    """

    doc = _new_document()
    msp = doc.modelspace()
    add_segments(msp, axis, AXIS_LAYER)
    for ring in rings or []:
        if len(ring) >= 2:
            msp.add_lwpolyline([(p[0], p[1]) for p in ring], dxfattribs={'layer': RING_LAYER})
    return _save(doc, output_path)


def write_profile_dxf(profile: Profile, output_path: Path | str) -> Path:
    """Write one profile's segments in local coordinates."""

    doc = _new_document()
    add_segments(doc.modelspace(), profile.segments, PROFILE_LAYER)
    return _save(doc, output_path)


def _save(doc, output_path: Path | str) -> Path:
    path = Path(output_path)
    if path.suffix.lower() != '.dxf':
        path = path.with_suffix('.dxf')
    doc.saveas(str(path))
    return path


__all__ = [
    'AXIS_LAYER',
    'PROFILE_LAYER',
    'RING_LAYER',
    'add_segments',
    'write_plan_dxf',
    'write_profile_dxf',
]
