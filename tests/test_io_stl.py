import io
import math
import struct

import pytest

from bspcsg.geometry_checks import mesh_watertight, solid_watertight
from bspcsg.io.stl import read_stl, write_stl
from bspcsg.primitives import cube, cylinder
from bspcsg.solid import Solid


def test_write_stl_binary(tmp_path):
    path = tmp_path / 'cube.stl'
    write_stl(cube(2.0), path, binary=True, name='test')

    data = path.read_bytes()
    assert len(data) == 80 + 4 + 12 * 50  # header + count + triangles
    assert data[0:4] == b'test'
    count = struct.unpack('<I', data[80:84])[0]
    assert count == 12


def test_write_stl_ascii():
    buf = io.StringIO()
    write_stl(cube(2.0), buf, binary=False, name='ascii_test')

    text = buf.getvalue()
    assert text.startswith('solid ascii_test')
    assert text.count('facet normal') == 12
    assert text.count('vertex') == 36
    assert text.strip().endswith('endsolid ascii_test')


def test_write_vertex_buffer_to_stream():
    stream = io.BytesIO()
    write_stl(cylinder(1.0, 1.0, segments=6).compile(smooth=True), stream)
    assert len(stream.getvalue()) == 84 + (6 * 2 + 2 * 4) * 50


# ---------------------------------------------------------------------------
# STL Import Tests
# ---------------------------------------------------------------------------


@pytest.mark.parametrize('binary', [True, False])
def test_read_stl_roundtrip(tmp_path, binary):
    path = tmp_path / 'box.stl'
    write_stl(cube(2.0), path, binary=binary)

    imported = read_stl(path)
    assert imported.polygon_count == 12
    assert all(len(p) == 3 for p in imported.polygons)
    assert math.isclose(imported.volume(), 8.0, rel_tol=1e-6)
    assert solid_watertight(imported)


def test_read_stl_binary_named_solid(tmp_path):
    # a binary header may itself start with "solid"
    path = tmp_path / 'named.stl'
    write_stl(cube(1.0), path, binary=True, name='solid cube')
    assert read_stl(path).polygon_count == 12


def test_imported_solid_takes_part_in_booleans(tmp_path):
    path = tmp_path / 'box.stl'
    write_stl(cube(2.0), path)
    imported = read_stl(path)
    hollow = imported - cube(1.0)
    assert math.isclose(hollow.volume(), 7.0, rel_tol=1e-6)


def test_read_stl_drops_degenerate_facets():
    text = '\n'.join([
        'solid two',
        'facet normal 0 0 1',
        ' outer loop',
        '  vertex 0 0 0',
        '  vertex 1 0 0',
        '  vertex 0 1 0',
        ' endloop',
        'endfacet',
        'facet normal 0 0 1',
        ' outer loop',
        '  vertex 0 0 0',
        '  vertex 1 0 0',
        '  vertex 2 0 0',
        ' endloop',
        'endfacet',
        'endsolid two',
    ])
    solid = read_stl(io.StringIO(text))
    assert solid.polygon_count == 1
    assert solid.polygons[0].normal.z == 1.0


def test_read_stl_rejects_garbage():
    with pytest.raises(ValueError):
        read_stl(io.BytesIO(b'definitely not an stl file'))


def test_read_stl_rejects_truncated_binary():
    data = b'\0' * 80 + struct.pack('<I', 10) + b'\0' * 50
    with pytest.raises(ValueError):
        read_stl(io.BytesIO(data))


def test_exported_boolean_is_closed(tmp_path):
    part = cube(2.0) | cube(2.0, center=(1, 1, 1))
    path = tmp_path / 'union.stl'
    write_stl(part, path)

    imported = read_stl(path)
    assert mesh_watertight(imported.compile(weld=False))
    assert math.isclose(imported.volume(), 15.0, rel_tol=1e-6)


def test_read_stl_rejects_two_vertex_facet():
    text = '\n'.join([
        'solid short',
        'facet normal 0 0 1',
        ' outer loop',
        '  vertex 0 0 0',
        '  vertex 1 0 0',
        ' endloop',
        'endfacet',
        'endsolid short',
    ])
    with pytest.raises(ValueError):
        read_stl(io.StringIO(text))


def test_empty_solid_roundtrip():
    stream = io.BytesIO()
    write_stl(Solid.empty(), stream)
    assert len(stream.getvalue()) == 84
    stream.seek(0)
    assert read_stl(stream).polygon_count == 0
