## boundary-represented solids and their boolean algebra for bspCSG
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
=====================================================
solid -- closed polygonal solids and CSG operations
=====================================================

A ``Solid`` is a closed, outward-oriented boundary: a tuple of convex
``Polygon`` faces in which every edge is shared by two faces wound in
opposite directions.  Solids are values.  ``union``, ``subtract`` and
``intersect`` (also ``|``, ``-`` and ``&``) return new solids and
never change their operands; ``invert`` (``~``) returns the
complement.

Each solid lazily builds and caches a BSP tree of its faces.  A boolean
operation clones both cached trees on entry, runs the classical
clip / invert / merge sequence on the clones, and wraps the surviving
polygons in a new solid.  The step order of each sequence matters:
reordering it breaks closedness.

The empty solid has no polygons.  Boolean operations with an empty
operand are resolved directly, and an operation whose result is empty
returns an empty solid rather than raising.

Example: ::

   from bspcsg.primitives import cube, cylinder

   block = cube(2.0)
   hole = cylinder(0.5, 4.0, segments=24, center=(0, 0, -2))
   part = block - hole
   buf = part.compile()

"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence, Tuple, Union

from bspcsg.bsp import Node
from bspcsg.geom import DEFAULT_TOLERANCE, ORIGIN, Tolerance, Vector3, rotate_about_axis, vstr
from bspcsg.mesh import VertexBuffer, compile_polygons
from bspcsg.polygon import Polygon

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CircumSphere:
    """Bounding sphere centered on the bounding-box center, with the
    radius of the farthest vertex."""

    center: Vector3
    radius: float

    @classmethod
    def from_points(cls, points: Iterable[Vector3]) -> "CircumSphere":
        points = list(points)
        if not points:
            return cls(ORIGIN, 0.0)
        lo, hi = _bbox_of(points)
        center = lo.lerp(hi, 0.5)
        radius = max(center.distance(p) for p in points)
        return cls(center, radius)

    def contains(self, p: Vector3, tol: Tolerance = DEFAULT_TOLERANCE) -> bool:
        return self.center.distance(Vector3.of(p)) <= self.radius + tol.eps

    def to_string(self, indent: str = '\t', level: int = 0) -> str:
        pad = indent * level
        return '\n'.join([f'{pad}{type(self).__name__}',
                          f'{pad}{indent}center {vstr(self.center)}',
                          f'{pad}{indent}radius {self.radius:.6g}'])


def _bbox_of(points: Sequence[Vector3]) -> Tuple[Vector3, Vector3]:
    lo = Vector3(min(p.x for p in points), min(p.y for p in points), min(p.z for p in points))
    hi = Vector3(max(p.x for p in points), max(p.y for p in points), max(p.z for p in points))
    return lo, hi


class Solid:
    """
    Closed solid bounded by convex polygons.

    ``Solid(polygons)`` trusts its input to be closed and outward
    oriented; the generators in ``bspcsg.primitives`` and the boolean
    operations guarantee this.
    """

    def __init__(self, polygons: Iterable[Polygon] = (), tol: Tolerance = DEFAULT_TOLERANCE):
        self._polygons = tuple(polygons)
        self.tol = tol
        self._tree: Optional[Node] = None
        self._bounds: Optional[CircumSphere] = None

    @classmethod
    def from_polygons(cls, polygons: Iterable[Polygon],
                      tol: Tolerance = DEFAULT_TOLERANCE) -> "Solid":
        return cls(polygons, tol)

    @classmethod
    def empty(cls, tol: Tolerance = DEFAULT_TOLERANCE) -> "Solid":
        return cls((), tol)

    def __repr__(self):
        return f'Solid({len(self._polygons)} polygons)'

    def __iter__(self) -> Iterator[Polygon]:
        return iter(self._polygons)

    @property
    def polygons(self) -> Tuple[Polygon, ...]:
        return self._polygons

    @property
    def polygon_count(self) -> int:
        return len(self._polygons)

    @property
    def is_empty(self) -> bool:
        return not self._polygons

    def _bsp(self) -> Node:
        if self._tree is None:
            self._tree = Node(self._polygons, self.tol)
            logger.debug('built BSP tree of %d nodes for %d polygons',
                         self._tree.node_count(), len(self._polygons))
        return self._tree

    def _operands(self, other: "Solid") -> Tuple[Node, Node]:
        return self._bsp().clone(), other._bsp().clone()

    def _result(self, tree: Node) -> "Solid":
        return Solid(tree.all_polygons(), self.tol)

    def _copy(self) -> "Solid":
        return Solid(self._polygons, self.tol)

    ## boolean algebra
    ## ---------------

    def union(self, other: "Solid") -> "Solid":
        """Return a solid occupying the space of either operand."""
        if self.is_empty:
            return other._copy()
        if other.is_empty:
            return self._copy()
        logger.debug('union of %d and %d polygons', self.polygon_count, other.polygon_count)
        a, b = self._operands(other)
        a.clip_to(b)
        b.clip_to(a)
        b.invert()
        b.clip_to(a)
        b.invert()
        a.build(b.all_polygons())
        return self._result(a)

    def subtract(self, other: "Solid") -> "Solid":
        """Return a solid occupying the space of this solid that is not
        inside ``other``."""
        if self.is_empty:
            return Solid.empty(self.tol)
        if other.is_empty:
            return self._copy()
        logger.debug('subtract %d polygons from %d', other.polygon_count, self.polygon_count)
        a, b = self._operands(other)
        a.invert()
        a.clip_to(b)
        b.clip_to(a)
        b.invert()
        b.clip_to(a)
        b.invert()
        a.build(b.all_polygons())
        a.invert()
        return self._result(a)

    def intersect(self, other: "Solid") -> "Solid":
        """Return a solid occupying the space inside both operands."""
        if self.is_empty or other.is_empty:
            return Solid.empty(self.tol)
        logger.debug('intersect %d and %d polygons', self.polygon_count, other.polygon_count)
        a, b = self._operands(other)
        a.invert()
        b.clip_to(a)
        b.invert()
        a.clip_to(b)
        b.clip_to(a)
        a.build(b.all_polygons())
        a.invert()
        return self._result(a)

    def invert(self) -> "Solid":
        """Return the complement: every polygon flipped.  The complement
        of the empty solid has no boundary and is again empty."""
        return Solid([p.flipped() for p in self._polygons], self.tol)

    __or__ = union
    __sub__ = subtract
    __and__ = intersect
    __invert__ = invert

    ## measurements
    ## ------------

    def volume(self) -> float:
        """Signed enclosed volume by the divergence theorem.  Outward
        oriented solids are positive, complements negative."""
        total = 0.0
        for poly in self._polygons:
            pos = poly.positions
            p0 = pos[0]
            for i in range(1, len(pos) - 1):
                total += p0.dot(pos[i].cross(pos[i + 1]))
        return total / 6.0

    def surface_area(self) -> float:
        return sum(p.area() for p in self._polygons)

    def vertices(self) -> Iterator[Vector3]:
        for poly in self._polygons:
            yield from poly.positions

    def bbox(self) -> Optional[Tuple[Vector3, Vector3]]:
        """``(min, max)`` corners, or ``None`` for the empty solid"""
        if self.is_empty:
            return None
        return _bbox_of(list(self.vertices()))

    @property
    def bounds(self) -> CircumSphere:
        if self._bounds is None:
            self._bounds = CircumSphere.from_points(self.vertices())
        return self._bounds

    ## transforms
    ## ----------

    def translate(self, delta) -> "Solid":
        d = Vector3.of(delta)
        return Solid([p.transformed(lambda v: v + d) for p in self._polygons], self.tol)

    def scale(self, factor: Union[float, Sequence[float]]) -> "Solid":
        """Scale about the origin, uniformly or per axis.  Factors whose
        product is negative mirror the solid; the polygons are re-wound
        so the result stays outward oriented."""
        if isinstance(factor, (int, float)):
            s = Vector3(factor, factor, factor)
        else:
            s = Vector3.of(factor)
        if s.x == 0 or s.y == 0 or s.z == 0:
            raise ValueError('scale factors must be non-zero')
        mirror = s.x * s.y * s.z < 0

        def point_func(v):
            return Vector3(v.x * s.x, v.y * s.y, v.z * s.z)

        def normal_func(n):
            return Vector3(n.x / s.x, n.y / s.y, n.z / s.z).normalize()

        return Solid([p.transformed(point_func, normal_func, reverse=mirror)
                      for p in self._polygons], self.tol)

    def rotate(self, angle: float, axis=(0.0, 0.0, 1.0), center=ORIGIN) -> "Solid":
        """Rotate by ``angle`` degrees about the line through ``center``
        along ``axis``."""
        k = Vector3.of(axis)
        c = Vector3.of(center)
        return Solid([p.transformed(lambda v: rotate_about_axis(v, angle, k, c),
                                    lambda n: rotate_about_axis(n, angle, k))
                      for p in self._polygons], self.tol)

    def with_shared(self, shared) -> "Solid":
        """Copy with every polygon carrying the tag ``shared``."""
        return Solid([p.with_shared(shared) for p in self._polygons], self.tol)

    ## output
    ## ------

    def compile(self, smooth: bool = False, weld: bool = True) -> VertexBuffer:
        """Triangle buffer of the boundary; see ``compile_polygons``."""
        return compile_polygons(self._polygons, smooth=smooth, weld=weld, tol=self.tol)

    def to_string(self, indent: str = '\t') -> str:
        """Indented multi-line dump of the bounds and of every polygon
        with its vertices and plane.  For inspection only."""
        lines = [f'{type(self).__name__}',
                 f'{indent}polygons {len(self._polygons)}',
                 self.bounds.to_string(indent, 1)]
        for poly in self._polygons:
            lines.append(poly.to_string(indent, 1))
        return '\n'.join(lines)


__all__ = ['CircumSphere', 'Solid']
