## convex planar polygons and their supporting planes for bspCSG
## Copyright (c) 2024 bspCSG contributors

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""
=========================================================
polygon -- convex planar faces and plane splitting
=========================================================

A ``Polygon`` is an immutable, convex, planar loop of three or more
``Vertex`` instances.  Viewed from outside the solid the loop runs
counter-clockwise, so the right-hand rule gives the outward normal.
Each polygon caches the ``Plane`` derived from its first three
vertices and carries an opaque ``shared`` tag (a material id, a color,
anything hashable or not) that is copied unchanged through splits and
flips.

A ``Plane`` is a unit normal and a signed offset ``w`` such that points
``p`` on the plane satisfy ``dot(normal, p) == w``.  Points are
classified as ``FRONT``, ``BACK`` or ``COPLANAR`` against the plane's
tolerance, and a polygon whose vertices fall on both sides is
``SPANNING``.  ``Plane.split`` cuts a spanning polygon into exactly one
front and one back piece.

Degenerate polygons, those with fewer than three distinct vertices or a
near-zero normal, cannot be constructed directly (``ValueError``).
Splitting uses ``make_polygon``, which returns ``None`` instead, and
the degenerate fragment is dropped.

"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from bspcsg.geom import DEFAULT_TOLERANCE, Tolerance, Vector3, vstr

logger = logging.getLogger(__name__)


class Classification(IntEnum):
    """Point and polygon classification against a plane.  The values
    are bit flags, so or-ing the classes of all vertices of a polygon
    yields the class of the polygon."""

    COPLANAR = 0
    FRONT = 1
    BACK = 2
    SPANNING = 3


COPLANAR = Classification.COPLANAR
FRONT = Classification.FRONT
BACK = Classification.BACK
SPANNING = Classification.SPANNING


@dataclass(frozen=True)
class Vertex:
    """Polygon vertex: a position and an optional vertex normal, used
    only for smooth shading."""

    pos: Vector3
    normal: Optional[Vector3] = None

    def flipped(self) -> "Vertex":
        if self.normal is None:
            return self
        return Vertex(self.pos, self.normal.negated())

    def interpolate(self, other: "Vertex", t: float) -> "Vertex":
        """Return the vertex a fraction ``t`` of the way to ``other``."""
        normal = None
        if self.normal is not None and other.normal is not None:
            normal = self.normal.lerp(other.normal, t)
        return Vertex(self.pos.lerp(other.pos, t), normal)


def as_vertex(v) -> Vertex:
    if isinstance(v, Vertex):
        return v
    return Vertex(Vector3.of(v))


@dataclass(frozen=True)
class Plane:
    """Oriented plane ``dot(normal, p) == w`` with a unit ``normal``."""

    normal: Vector3
    w: float
    tol: Tolerance = DEFAULT_TOLERANCE

    @classmethod
    def from_points(cls, a: Vector3, b: Vector3, c: Vector3,
                    tol: Tolerance = DEFAULT_TOLERANCE) -> "Plane":
        n = (b - a).cross(c - a).normalize()
        return cls(n, n.dot(a), tol)

    def flipped(self) -> "Plane":
        """the complementary half-space"""
        return Plane(self.normal.negated(), -self.w, self.tol)

    def distance(self, p: Vector3) -> float:
        """signed distance of ``p`` from the plane"""
        return self.normal.dot(p) - self.w

    def classify(self, p: Vector3) -> Classification:
        t = self.distance(p)
        if t < -self.tol.eps:
            return BACK
        if t > self.tol.eps:
            return FRONT
        return COPLANAR

    def classify_polygon(self, polygon: "Polygon") -> Classification:
        kind = COPLANAR
        for v in polygon.vertices:
            kind |= self.classify(v.pos)
        return Classification(kind)

    def split(self, polygon: "Polygon") -> "SplitResult":
        """Split ``polygon`` by this plane.

        Returns a ``SplitResult`` of ``(coplanar_front, coplanar_back,
        front, back)``.  At most one of the coplanar slots is filled; a
        spanning polygon fills ``front`` and ``back`` (either may be
        ``None`` if the piece on that side was degenerate).
        """
        cf: List[Polygon] = []
        cb: List[Polygon] = []
        f: List[Polygon] = []
        b: List[Polygon] = []
        self.split_polygon(polygon, cf, cb, f, b)
        return SplitResult(cf[0] if cf else None,
                           cb[0] if cb else None,
                           f[0] if f else None,
                           b[0] if b else None)

    def split_polygon(self, polygon: "Polygon",
                      coplanar_front: List["Polygon"],
                      coplanar_back: List["Polygon"],
                      front: List["Polygon"],
                      back: List["Polygon"]) -> None:
        """Split ``polygon`` by this plane if needed and append the
        polygon or its fragments to the appropriate lists.  The same list
        may be passed for several outputs."""

        types = [self.classify(v.pos) for v in polygon.vertices]
        kind = COPLANAR
        for t in types:
            kind |= t

        if kind == COPLANAR:
            if self.normal.dot(polygon.plane.normal) > 0:
                coplanar_front.append(polygon)
            else:
                coplanar_back.append(polygon)
        elif kind == FRONT:
            front.append(polygon)
        elif kind == BACK:
            back.append(polygon)
        else:
            f: List[Vertex] = []
            b: List[Vertex] = []
            verts = polygon.vertices
            count = len(verts)
            for i in range(count):
                j = (i + 1) % count
                ti = types[i]
                tj = types[j]
                vi = verts[i]
                vj = verts[j]
                if ti != BACK:
                    f.append(vi)
                if ti != FRONT:
                    b.append(vi)
                if (ti | tj) == SPANNING:
                    t = (self.w - self.normal.dot(vi.pos)) / self.normal.dot(vj.pos - vi.pos)
                    v = vi.interpolate(vj, t)
                    f.append(v)
                    b.append(v)
            for piece, out in ((f, front), (b, back)):
                poly = make_polygon(piece, polygon.shared, polygon.tol)
                if poly is None:
                    logger.debug('dropping degenerate fragment of %d vertices', len(piece))
                else:
                    out.append(poly)

    def to_string(self, indent: str = '\t') -> str:
        return f'{indent}plane normal={vstr(self.normal)} w={self.w:.6g}'


class SplitResult(NamedTuple):
    coplanar_front: Optional["Polygon"]
    coplanar_back: Optional["Polygon"]
    front: Optional["Polygon"]
    back: Optional["Polygon"]


def _dedupe(vertices: Sequence[Vertex], tol: Tolerance) -> List[Vertex]:
    if not vertices:
        return []
    deduped = [vertices[0]]
    for v in vertices[1:]:
        if not v.pos.isclose(deduped[-1].pos, tol):
            deduped.append(v)
    while len(deduped) > 1 and deduped[-1].pos.isclose(deduped[0].pos, tol):
        deduped.pop()
    return deduped


def _derive_plane(vertices: Sequence[Vertex], tol: Tolerance) -> Optional[Plane]:
    """Plane through the first three vertices.  If those happen to be
    collinear (a vertex left on an edge by an earlier split) the fan
    triple with the largest cross product is used instead.  Returns
    ``None`` when every triple is collinear."""

    a = vertices[0].pos
    n = (vertices[1].pos - a).cross(vertices[2].pos - a)
    length = n.length()
    if length <= tol.eps:
        for i in range(2, len(vertices) - 1):
            cand = (vertices[i].pos - a).cross(vertices[i + 1].pos - a)
            cand_len = cand.length()
            if cand_len > length:
                n, length = cand, cand_len
        if length <= tol.eps * tol.eps:
            return None
    n = n / length
    return Plane(n, n.dot(a), tol)


class Polygon:
    """
    Immutable convex planar polygon.

    ``vertices`` may be ``Vertex`` instances, ``Vector3`` instances or
    plain three-element sequences.  ``shared`` is an opaque tag carried
    unchanged through ``flipped`` and ``Plane.split``.
    """

    __slots__ = ('_vertices', 'shared', 'plane', 'tol')

    def __init__(self, vertices: Iterable, shared=None,
                 tol: Tolerance = DEFAULT_TOLERANCE, plane: Optional[Plane] = None):
        verts = tuple(as_vertex(v) for v in vertices)
        if len(verts) < 3:
            raise ValueError('a polygon needs at least three vertices')
        if plane is None:
            plane = _derive_plane(verts, tol)
            if plane is None:
                raise ValueError('degenerate polygon: vertices are collinear')
        self._vertices = verts
        self.shared = shared
        self.plane = plane
        self.tol = tol

    def __repr__(self):
        return f'Polygon({len(self._vertices)} vertices, shared={self.shared!r})'

    def __len__(self):
        return len(self._vertices)

    @property
    def vertices(self) -> Tuple[Vertex, ...]:
        return self._vertices

    @property
    def positions(self) -> Tuple[Vector3, ...]:
        return tuple(v.pos for v in self._vertices)

    @property
    def normal(self) -> Vector3:
        return self.plane.normal

    def flipped(self) -> "Polygon":
        """Return the polygon facing the other way: reversed vertex
        order, negated plane and vertex normals, same tag."""
        verts = [v.flipped() for v in reversed(self._vertices)]
        return Polygon(verts, self.shared, self.tol, self.plane.flipped())

    def with_shared(self, shared) -> "Polygon":
        return Polygon(self._vertices, shared, self.tol, self.plane)

    def edges(self) -> List[Tuple[Vector3, Vector3]]:
        """directed boundary edges in winding order"""
        pos = self.positions
        return [(pos[i], pos[(i + 1) % len(pos)]) for i in range(len(pos))]

    def area(self) -> float:
        pos = self.positions
        total = Vector3()
        for i in range(1, len(pos) - 1):
            total = total + (pos[i] - pos[0]).cross(pos[i + 1] - pos[0])
        return 0.5 * abs(total.dot(self.plane.normal))

    def centroid(self) -> Vector3:
        """vertex average, which lies inside a convex polygon"""
        pos = self.positions
        total = Vector3()
        for p in pos:
            total = total + p
        return total / len(pos)

    def transformed(self, point_func: Callable[[Vector3], Vector3],
                    normal_func: Optional[Callable[[Vector3], Vector3]] = None,
                    reverse: bool = False) -> "Polygon":
        """Map every vertex position through ``point_func`` (and vertex
        normals through ``normal_func``).  ``reverse`` restores outward
        winding after a mirroring transform."""

        verts = []
        for v in self._vertices:
            normal = v.normal
            if normal is not None and normal_func is not None:
                normal = normal_func(normal)
            verts.append(Vertex(point_func(v.pos), normal))
        if reverse:
            verts.reverse()
        return Polygon(verts, self.shared, self.tol)

    def to_string(self, indent: str = '\t', level: int = 1) -> str:
        pad = indent * level
        lines = [f'{pad}{type(self).__name__} shared={self.shared!r} vertices={len(self._vertices)}',
                 self.plane.to_string(indent * (level + 1))]
        for v in self._vertices:
            if v.normal is None:
                lines.append(f'{indent * (level + 1)}vertex {vstr(v.pos)}')
            else:
                lines.append(f'{indent * (level + 1)}vertex {vstr(v.pos)} normal {vstr(v.normal)}')
        return '\n'.join(lines)


def make_polygon(vertices: Sequence, shared=None,
                 tol: Tolerance = DEFAULT_TOLERANCE) -> Optional[Polygon]:
    """Build a polygon, or return ``None`` if the vertex loop is
    degenerate (fewer than three distinct vertices, or collinear)."""

    verts = _dedupe([as_vertex(v) for v in vertices], tol)
    if len(verts) < 3:
        return None
    plane = _derive_plane(verts, tol)
    if plane is None:
        return None
    return Polygon(verts, shared, tol, plane)


__all__ = [
    'Classification',
    'COPLANAR',
    'FRONT',
    'BACK',
    'SPANNING',
    'Vertex',
    'Plane',
    'SplitResult',
    'Polygon',
    'make_polygon',
]
