"""STL export for swept tunnel meshes."""

from __future__ import annotations

from contextlib import contextmanager
from typing import IO, Iterator

import numpy as np

from tunnelcad.mesh import TubeMesh

_HEADER_SIZE = 80

# one binary facet record: normal, three corners, attribute byte count
FACET_DTYPE = np.dtype([
    ('normal', '<f4', (3,)),
    ('vertices', '<f4', (3, 3)),
    ('attr', '<u2'),
])


@contextmanager
def _opened(path_or_file, mode: str) -> Iterator[IO]:
    """Yield a writable stream; paths are opened and closed here."""

    if hasattr(path_or_file, 'write'):
        yield path_or_file
        return
    kwargs = {} if 'b' in mode else {'encoding': 'ascii'}
    with open(path_or_file, mode, **kwargs) as stream:
        yield stream


def facet_records(mesh: TubeMesh) -> np.ndarray:
    """Binary STL facet records of the non-degenerate faces of ``mesh``."""

    normals, corners = mesh.facets()
    records = np.zeros(len(normals), dtype=FACET_DTYPE)
    records['normal'] = normals
    records['vertices'] = corners
    return records


def _stl_header(name: str) -> bytes:
    return name.encode('ascii', errors='replace')[:_HEADER_SIZE].ljust(_HEADER_SIZE, b' ')


def _ascii_facet(normal: np.ndarray, corners: np.ndarray) -> str:
    lines = ["  facet normal %.6e %.6e %.6e" % tuple(normal), "    outer loop"]
    lines.extend("      vertex %.6e %.6e %.6e" % tuple(v) for v in corners)
    lines.extend(["    endloop", "  endfacet"])
    return "\n".join(lines)


def write_stl(mesh: TubeMesh, path_or_file, *, binary: bool = True, name: str = 'tunnelcad') -> int:
    """Write ``mesh`` to STL and return the number of facets written.

    ``path_or_file`` can be a filesystem path or an open binary/text stream.
    Degenerate faces are left out.
    """

    if binary:
        records = facet_records(mesh)
        with _opened(path_or_file, 'wb') as stream:
            stream.write(_stl_header(name))
            stream.write(np.uint32(len(records)).astype('<u4').tobytes())
            stream.write(records.tobytes())
        return len(records)

    normals, corners = mesh.facets()
    body = [f"solid {name}"]
    body.extend(_ascii_facet(n, c) for n, c in zip(normals, corners))
    body.append(f"endsolid {name}")
    with _opened(path_or_file, 'w') as stream:
        stream.write("\n".join(body) + "\n")
    return len(normals)


__all__ = ['FACET_DTYPE', 'facet_records', 'write_stl']
