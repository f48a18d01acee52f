"""STL import and export for bspCSG solids and vertex buffers.

Binary files are read and written through a numpy record type that
matches the 50-byte facet layout, so a whole file is one
``tobytes`` / ``frombuffer`` call.  Readers return facets as an
``(N, 3, 3)`` array of corner positions; stored facet normals are not
kept because the winding decides orientation.
"""

from __future__ import annotations

import contextlib
import logging

import numpy as np

from bspcsg.geom import DEFAULT_TOLERANCE, Tolerance, Vector3
from bspcsg.mesh import VertexWelder, mesh_view
from bspcsg.polygon import make_polygon
from bspcsg.solid import Solid

logger = logging.getLogger(__name__)

_HEADER_SIZE = 80
_COUNT_SIZE = 4

## one binary facet: normal, three corners, attribute byte count
_FACET_DTYPE = np.dtype([
    ('normal', '<f4', (3,)),
    ('vertices', '<f4', (3, 3)),
    ('attr', '<u2'),
])

## an ASCII file names its first facet well inside this many bytes
_SNIFF_SIZE = 512


@contextlib.contextmanager
def _stream(path_or_file, mode: str):
    """yield an open stream, opening and closing a path ourselves but
    leaving a caller's stream open"""
    method = 'read' if mode.startswith('r') else 'write'
    if hasattr(path_or_file, method):
        yield path_or_file
        return
    encoding = None if 'b' in mode else 'ascii'
    with open(path_or_file, mode, encoding=encoding) as f:
        yield f


def write_stl(obj, path_or_file, *, binary: bool = True, name: str = 'bspCSG') -> None:
    """Write ``obj`` (a ``Solid``, a ``VertexBuffer`` or an iterable of
    polygons) to STL.

    ``path_or_file`` can be a filesystem path or an open stream, binary
    for ``binary=True`` and text otherwise.  Solids are compiled with
    T-junctions repaired, so a closed solid gives a closed mesh.
    """

    triangles = list(mesh_view(obj))
    if binary:
        payload = _binary_bytes(triangles, name)
        with _stream(path_or_file, 'wb') as out:
            out.write(payload)
    else:
        text = _ascii_text(triangles, name)
        with _stream(path_or_file, 'w') as out:
            out.write(text)


def _binary_bytes(triangles, name: str) -> bytes:
    records = np.zeros(len(triangles), dtype=_FACET_DTYPE)
    if triangles:
        records['normal'] = [tri[0] for tri in triangles]
        records['vertices'] = [tri[1:] for tri in triangles]
    header = name.encode('ascii', errors='replace')[:_HEADER_SIZE].ljust(_HEADER_SIZE, b' ')
    count = np.array([len(triangles)], dtype='<u4').tobytes()
    return header + count + records.tobytes()


def _ascii_text(triangles, name: str) -> str:
    def triple(v) -> str:
        return f'{v[0]:.6e} {v[1]:.6e} {v[2]:.6e}'

    lines = [f'solid {name}']
    for normal, *corners in triangles:
        lines.append(f'  facet normal {triple(normal)}')
        lines.append('    outer loop')
        lines.extend(f'      vertex {triple(v)}' for v in corners)
        lines.append('    endloop')
        lines.append('  endfacet')
    lines.append(f'endsolid {name}')
    return '\n'.join(lines) + '\n'


# ---------------------------------------------------------------------------
# STL Import
# ---------------------------------------------------------------------------


def _looks_binary(data: bytes) -> bool:
    """Guess the flavour of ``data``.

    A file whose size is exactly what its facet count promises is binary
    unless a ``facet`` keyword shows up near the start; otherwise the
    ``solid`` keyword marks ASCII.  Binary headers are free text, so
    they may start with ``solid`` too.
    """
    head = data[:_SNIFF_SIZE]
    ascii_start = data.lstrip()[:5].lower() == b'solid'
    if len(data) >= _HEADER_SIZE + _COUNT_SIZE:
        count = int(np.frombuffer(data, dtype='<u4', count=1, offset=_HEADER_SIZE)[0])
        sized = len(data) == _HEADER_SIZE + _COUNT_SIZE + count * _FACET_DTYPE.itemsize
        if sized:
            return not (ascii_start and b'facet' in head.lower())
        return not ascii_start
    return False


def _binary_facets(data: bytes) -> np.ndarray:
    if len(data) < _HEADER_SIZE + _COUNT_SIZE:
        raise ValueError('binary STL is shorter than its header')
    count = int(np.frombuffer(data, dtype='<u4', count=1, offset=_HEADER_SIZE)[0])
    needed = _HEADER_SIZE + _COUNT_SIZE + count * _FACET_DTYPE.itemsize
    if len(data) < needed:
        raise ValueError(f'truncated binary STL: {count} facets need {needed} bytes, '
                         f'got {len(data)}')
    records = np.frombuffer(data, dtype=_FACET_DTYPE, count=count,
                            offset=_HEADER_SIZE + _COUNT_SIZE)
    return records['vertices'].astype(np.float64)


def _ascii_facets(text: str) -> np.ndarray:
    """Collect the three ``vertex`` lines of each facet.  Only
    ``vertex`` and ``endfacet`` carry data; every other keyword is
    structure."""

    tokens = text.split()
    if not tokens or tokens[0].lower() != 'solid':
        raise ValueError('not an STL file: missing "solid" keyword')

    facets = []
    corners = []
    pos = 1
    while pos < len(tokens):
        word = tokens[pos].lower()
        pos += 1
        if word == 'vertex':
            try:
                corners.append([float(t) for t in tokens[pos:pos + 3]])
            except ValueError as exc:
                raise ValueError(f'bad vertex in ASCII STL near token {pos}') from exc
            if len(corners[-1]) != 3:
                raise ValueError('ASCII STL ends inside a vertex')
            pos += 3
        elif word == 'endfacet':
            if len(corners) != 3:
                raise ValueError(f'ASCII STL facet with {len(corners)} vertices')
            facets.append(corners)
            corners = []
    return np.array(facets, dtype=np.float64).reshape(-1, 3, 3)


def read_stl(path_or_file, *, tol: Tolerance = DEFAULT_TOLERANCE) -> Solid:
    """Read an STL file and return a ``Solid`` with one triangle per
    facet.

    Coincident vertices are welded to a single position so that
    neighbouring facets share exact coordinates.  Facet winding is
    trusted over the stored facet normal, and degenerate facets are
    dropped.
    """

    with _stream(path_or_file, 'rb') as f:
        data = f.read()
    if isinstance(data, str):
        data = data.encode('utf-8')

    if _looks_binary(data):
        facets = _binary_facets(data)
    else:
        facets = _ascii_facets(data.decode('utf-8', errors='replace'))

    welder = VertexWelder(tol)
    polygons = []
    for corners in facets:
        verts = [welder.points[welder.add(Vector3.of(p))] for p in corners]
        poly = make_polygon(verts, tol=tol)
        if poly is None:
            logger.debug('dropping degenerate STL facet %s', corners.tolist())
            continue
        polygons.append(poly)
    logger.debug('read %d STL facets, kept %d', len(facets), len(polygons))
    return Solid(polygons, tol)


__all__ = ['write_stl', 'read_stl']
