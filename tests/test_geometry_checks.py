from bspcsg.geometry_checks import (
    degenerate_polygons,
    mesh_watertight,
    polygons_oriented,
    solid_watertight,
)
from bspcsg.mesh import compile_polygons
from bspcsg.polygon import Polygon
from bspcsg.primitives import cube, sphere
from bspcsg.solid import Solid


def test_closed_cube_passes():
    result = solid_watertight(cube(1.0))
    assert result.ok
    assert result.warnings == []


def test_open_box_fails():
    open_box = Solid(cube(1.0).polygons[:-1])
    result = solid_watertight(open_box)
    assert not result
    assert any('boundary' in w for w in result.warnings)


def test_duplicated_face_fails():
    polys = cube(1.0).polygons
    result = mesh_watertight(compile_polygons(polys + polys[:1]))
    assert not result.ok
    assert any('more than once' in w for w in result.warnings)


def test_empty_buffer_is_trivially_closed():
    result = mesh_watertight(compile_polygons([]))
    assert result.ok
    assert result.warnings == ['no triangles found']


def test_orientation():
    assert polygons_oriented(sphere(1.0))
    bad = polygons_oriented(~sphere(1.0))
    assert not bad
    assert 'non-positive' in bad.warnings[0]
    assert polygons_oriented(Solid.empty())


def test_degenerate_polygons():
    good = Polygon([(0, 0, 0), (1, 0, 0), (0, 1, 0)])
    sliver = Polygon([(0, 0, 0), (1, 0, 0), (0.5, 1e-10, 0)], plane=good.plane)
    assert degenerate_polygons([good, sliver, good]) == [1]
