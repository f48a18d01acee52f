import math

from bspcsg.bsp import Node, Region
from bspcsg.geom import Vector3
from bspcsg.polygon import Polygon
from bspcsg.primitives import cube, sphere


def _cube_tree():
    return Node(cube(2.0).polygons)


def _slab(x0, x1, half_width=0.5, z=0.0):
    return Polygon([(x0, -half_width, z), (x1, -half_width, z),
                    (x1, half_width, z), (x0, half_width, z)])


def test_region_complement():
    assert Region.OUTSIDE.complement() is Region.INSIDE
    assert Region.INSIDE.complement() is Region.OUTSIDE


def test_empty_tree():
    tree = Node()
    assert tree.plane is None
    assert tree.all_polygons() == []
    assert tree.node_count() == 1
    polys = [_slab(0, 1)]
    assert tree.clip_polygons(polys) == polys


def test_convex_tree_is_a_chain():
    tree = _cube_tree()
    assert tree.node_count() == 6
    assert tree.depth() == 6
    assert len(tree.all_polygons()) == 6
    # every face of a convex solid lies behind every other face
    assert tree.front is Region.OUTSIDE
    assert isinstance(tree.back, Node)


def test_build_is_incremental():
    tree = Node(cube(2.0).polygons[:3])
    tree.build(cube(2.0).polygons[3:])
    assert len(tree.all_polygons()) == 6


def test_coplanar_polygons_share_a_node():
    a = _slab(0, 1)
    b = _slab(2, 3)
    tree = Node([a, b])
    assert tree.node_count() == 1
    assert tree.polygons == [a, b]


def test_clip_keeps_outside_discards_inside():
    tree = _cube_tree()
    outside = _slab(0, 1, z=5.0)
    inside = _slab(-0.5, 0.5)
    assert tree.clip_polygons([outside]) == [outside]
    assert tree.clip_polygons([inside]) == []


def test_clip_splits_straddling_polygon():
    tree = _cube_tree()
    kept = tree.clip_polygons([_slab(0, 3)])
    assert len(kept) == 1
    assert math.isclose(kept[0].area(), 2.0)
    assert math.isclose(min(p.x for p in kept[0].positions), 1.0)


def test_invert_complements_the_region():
    tree = _cube_tree()
    inverted = tree.clone()
    inverted.invert()
    kept = inverted.clip_polygons([_slab(0, 3)])
    assert len(kept) == 1
    assert math.isclose(kept[0].area(), 1.0)
    assert math.isclose(max(p.x for p in kept[0].positions), 1.0)
    assert inverted.back is Region.INSIDE
    assert isinstance(inverted.front, Node)
    assert all(p.normal.dot(q.normal) < 0
               for p, q in zip(inverted.all_polygons(), tree.all_polygons()))


def test_double_invert_restores_tree():
    tree = _cube_tree()
    copy = tree.clone()
    copy.invert()
    copy.invert()
    assert [p.positions for p in copy.all_polygons()] == \
        [p.positions for p in tree.all_polygons()]
    assert copy.plane == tree.plane
    assert copy.front is Region.OUTSIDE


def test_clone_is_independent():
    tree = _cube_tree()
    plane = tree.plane
    normals = [p.normal for p in tree.all_polygons()]
    copy = tree.clone()
    copy.invert()
    copy.clip_to(Node(cube(1.0, center=(1, 1, 1)).polygons))
    assert tree.plane == plane
    assert [p.normal for p in tree.all_polygons()] == normals
    assert tree.node_count() == 6


def test_clip_to_removes_overlap():
    a = Node(cube(2.0).polygons)
    b = Node(cube(2.0, center=(1, 1, 1)).polygons)
    a.clip_to(b)
    area = sum(p.area() for p in a.all_polygons())
    # each of the +x, +y and +z faces loses a unit square
    assert math.isclose(area, 3 * 4.0 + 3 * 3.0)


def test_long_chain_does_not_recurse():
    ball = sphere(1.0, slices=40, stacks=26)
    tree = Node(ball.polygons)
    count = ball.polygon_count
    assert count == 1040
    assert tree.node_count() == count
    assert tree.depth() == count
    copy = tree.clone()
    copy.invert()
    assert len(copy.all_polygons()) == count
    far = Polygon([Vector3(5, 0, 0), Vector3(6, 0, 0), Vector3(6, 1, 0)])
    assert tree.clip_polygons([far]) == [far]
