import math

import pytest

from bspcsg.geom import Tolerance, Vector3
from bspcsg.polygon import (
    BACK,
    COPLANAR,
    FRONT,
    SPANNING,
    Plane,
    Polygon,
    Vertex,
    make_polygon,
)


def _square(z=0.0, size=2.0, shared=None):
    return Polygon([(0, 0, z), (size, 0, z), (size, size, z), (0, size, z)], shared)


X_PLANE = Plane(Vector3(1, 0, 0), 1.0)


class TestPlane:

    def test_from_points_uses_right_hand_rule(self):
        p = Plane.from_points(Vector3(0, 0, 1), Vector3(1, 0, 1), Vector3(0, 1, 1))
        assert p.normal == Vector3(0, 0, 1)
        assert p.w == 1.0

    def test_classify(self):
        assert X_PLANE.classify(Vector3(2, 0, 0)) == FRONT
        assert X_PLANE.classify(Vector3(0, 5, 5)) == BACK
        assert X_PLANE.classify(Vector3(1, 3, -3)) == COPLANAR
        # within the tolerance counts as on the plane
        assert X_PLANE.classify(Vector3(1 + 5e-6, 0, 0)) == COPLANAR
        assert X_PLANE.classify(Vector3(1 + 5e-5, 0, 0)) == FRONT

    def test_custom_tolerance(self):
        loose = Plane(Vector3(1, 0, 0), 1.0, Tolerance(0.1))
        assert loose.classify(Vector3(1.05, 0, 0)) == COPLANAR

    def test_flipped(self):
        f = X_PLANE.flipped()
        assert f.normal == Vector3(-1, 0, 0)
        assert f.w == -1.0
        assert f.classify(Vector3(2, 0, 0)) == BACK
        assert f.flipped() == X_PLANE

    def test_classify_polygon(self):
        assert X_PLANE.classify_polygon(_square()) == SPANNING
        assert X_PLANE.classify_polygon(_square(size=0.5)) == BACK


class TestSplit:

    def test_spanning_quad_shares_two_new_vertices(self):
        sq = _square(shared='steel')
        cf, cb, front, back = X_PLANE.split(sq)
        assert cf is None and cb is None
        assert len(front) == 4 and len(back) == 4
        # four input vertices plus two interpolated ones, each used twice
        assert len(front) + len(back) == len(sq) + 2 * 2
        new_front = set(front.positions) - set(sq.positions)
        new_back = set(back.positions) - set(sq.positions)
        assert new_front == new_back == {Vector3(1, 0, 0), Vector3(1, 2, 0)}
        assert front.shared == back.shared == 'steel'
        assert front.normal == back.normal == sq.normal
        assert math.isclose(front.area() + back.area(), sq.area())

    def test_spanning_triangle(self):
        tri = Polygon([(0, 0, 0), (2, 0, 0), (0, 2, 0)])
        _, _, front, back = X_PLANE.split(tri)
        assert len(front) == 3
        assert len(back) == 4
        assert len(front) + len(back) == len(tri) + 2 * 2
        assert math.isclose(front.area(), 0.5)
        assert math.isclose(back.area(), 1.5)

    def test_split_through_vertices_adds_nothing(self):
        sq = _square()
        diagonal = Plane(Vector3(1, -1, 0).normalize(), 0.0)
        _, _, front, back = diagonal.split(sq)
        assert len(front) == 3 and len(back) == 3
        assert set(front.positions) | set(back.positions) == set(sq.positions)

    def test_one_sided_polygons_pass_through_unchanged(self):
        near = _square(size=0.5)
        result = X_PLANE.split(near)
        assert result.back is near
        assert result.front is None
        far = Polygon([(3, 0, 0), (4, 0, 0), (4, 1, 0)])
        assert X_PLANE.split(far).front is far

    def test_touching_polygon_is_not_split(self):
        touching = Polygon([(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)])
        result = X_PLANE.split(touching)
        assert result.back is touching

    def test_coplanar_bucket_follows_orientation(self):
        plane = Plane(Vector3(0, 0, 1), 0.0)
        up = _square()
        down = up.flipped()
        assert plane.split(up).coplanar_front is up
        assert plane.split(down).coplanar_back is down

    def test_split_polygon_appends_to_shared_list(self):
        out = []
        X_PLANE.split_polygon(_square(), out, out, out, out)
        assert len(out) == 2

    def test_thin_front_sliver_is_still_a_polygon(self):
        poly = Polygon([(0, 0, 0), (1.0 + 2e-5, 0, 0), (0, 1, 0)])
        _, _, front, back = X_PLANE.split(poly)
        assert back is not None
        assert front is None or front.area() > 0
        assert math.isclose(back.area(), poly.area(), rel_tol=1e-3)


class TestPolygon:

    def test_plane_from_first_three_vertices(self):
        sq = _square(z=3.0)
        assert sq.normal == Vector3(0, 0, 1)
        assert sq.plane.w == 3.0

    def test_collinear_start_uses_later_vertices(self):
        poly = Polygon([(0, 0, 0), (1, 0, 0), (2, 0, 0), (2, 2, 0), (0, 2, 0)])
        assert poly.normal.isclose(Vector3(0, 0, 1))

    def test_degenerate_polygons_are_rejected(self):
        with pytest.raises(ValueError):
            Polygon([(0, 0, 0), (1, 0, 0)])
        with pytest.raises(ValueError):
            Polygon([(0, 0, 0), (1, 0, 0), (2, 0, 0)])
        assert make_polygon([(0, 0, 0), (1, 0, 0), (2, 0, 0)]) is None
        assert make_polygon([(0, 0, 0), (0, 0, 0), (1, 0, 0), (1, 0, 0)]) is None

    def test_make_polygon_removes_duplicate_vertices(self):
        poly = make_polygon([(0, 0, 0), (0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 0, 0)])
        assert poly is not None
        assert len(poly) == 3

    def test_flipped(self):
        sq = Polygon([Vertex(Vector3(0, 0, 0), Vector3(0, 0, 1)),
                      Vertex(Vector3(1, 0, 0), Vector3(0, 0, 1)),
                      Vertex(Vector3(1, 1, 0), Vector3(0, 0, 1))], shared=7)
        f = sq.flipped()
        assert f.positions == tuple(reversed(sq.positions))
        assert f.normal == Vector3(0, 0, -1)
        assert all(v.normal == Vector3(0, 0, -1) for v in f.vertices)
        assert f.shared == 7
        again = f.flipped()
        assert again.positions == sq.positions
        assert again.plane == sq.plane

    def test_area_centroid_edges(self):
        sq = _square()
        assert math.isclose(sq.area(), 4.0)
        assert sq.centroid() == Vector3(1, 1, 0)
        edges = sq.edges()
        assert len(edges) == 4
        assert edges[-1] == (Vector3(0, 2, 0), Vector3(0, 0, 0))

    def test_vertex_interpolation(self):
        a = Vertex(Vector3(0, 0, 0), Vector3(1, 0, 0))
        b = Vertex(Vector3(2, 0, 0), Vector3(0, 1, 0))
        m = a.interpolate(b, 0.5)
        assert m.pos == Vector3(1, 0, 0)
        assert m.normal == Vector3(0.5, 0.5, 0)
        assert Vertex(Vector3()).interpolate(b, 0.5).normal is None

    def test_to_string(self):
        text = _square(shared='red').to_string('\t')
        lines = text.splitlines()
        assert lines[0].startswith('\tPolygon')
        assert "shared='red'" in lines[0]
        assert lines[1].startswith('\t\tplane normal=')
        assert sum(1 for line in lines if line.startswith('\t\tvertex')) == 4
