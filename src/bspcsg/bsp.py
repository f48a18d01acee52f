## binary space partition trees for bspCSG
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
==========================================
bsp -- BSP trees over convex polygon sets
==========================================

A ``Node`` holds a partitioning plane (taken from the first polygon it
was built from), every polygon coplanar with that plane, and a
``front`` and ``back`` child.  This is not a leafy BSP tree: polygons
live in interior nodes.

A child that holds no further partition is an explicit ``Region``
leaf rather than ``None``.  Behind the last plane on any path the
space is ``Region.INSIDE`` the solid; in front of it the space is
``Region.OUTSIDE``.  ``invert`` swaps the children and complements the
leaves, so the tags always say what the space means and
``clip_polygons`` never has to guess from the traversal direction.

Trees are mutated in place by ``build``, ``clip_to`` and ``invert``.
Those are algorithm steps for ``bspcsg.solid``, which only ever
applies them to private clones.  All traversals are iterative, so a
convex solid with thousands of faces (whose tree is a single long
chain) does not exhaust the interpreter stack.

"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Iterator, List, Optional, Union

from bspcsg.geom import DEFAULT_TOLERANCE, Tolerance
from bspcsg.polygon import Plane, Polygon


class Region(Enum):
    """Homogeneous leaf region of a BSP tree."""

    OUTSIDE = 'outside'
    INSIDE = 'inside'

    def complement(self) -> "Region":
        return Region.INSIDE if self is Region.OUTSIDE else Region.OUTSIDE


Child = Union["Node", Region]


class Node:
    """
    BSP tree node.  ``Node(polygons)`` builds a tree from a polygon
    list; ``Node()`` is the empty tree, which clips nothing away.
    """

    __slots__ = ('plane', 'polygons', 'front', 'back', 'tol')

    def __init__(self, polygons: Optional[Iterable[Polygon]] = None,
                 tol: Tolerance = DEFAULT_TOLERANCE):
        self.plane: Optional[Plane] = None
        self.polygons: List[Polygon] = []
        self.front: Child = Region.OUTSIDE
        self.back: Child = Region.INSIDE
        self.tol = tol
        if polygons:
            self.build(polygons)

    def __repr__(self):
        return f'Node(polygons={len(self.polygons)}, plane={self.plane!r})'

    def _walk(self) -> Iterator["Node"]:
        """pre-order traversal: this node, then the front subtree, then
        the back subtree"""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node.back, Node):
                stack.append(node.back)
            if isinstance(node.front, Node):
                stack.append(node.front)

    def clone(self) -> "Node":
        """Deep copy of the tree.  Polygons are immutable and shared."""
        root = Node(tol=self.tol)
        stack = [(self, root)]
        while stack:
            src, dst = stack.pop()
            dst.plane = src.plane
            dst.polygons = list(src.polygons)
            for side in ('front', 'back'):
                child = getattr(src, side)
                if isinstance(child, Node):
                    copy = Node(tol=child.tol)
                    setattr(dst, side, copy)
                    stack.append((child, copy))
                else:
                    setattr(dst, side, child)
        return root

    def invert(self) -> None:
        """Convert solid space to empty space and empty space to solid
        space."""
        for node in self._walk():
            node.polygons = [p.flipped() for p in node.polygons]
            if node.plane is not None:
                node.plane = node.plane.flipped()
            front, back = node.front, node.back
            node.front = back.complement() if isinstance(back, Region) else back
            node.back = front.complement() if isinstance(front, Region) else front

    def clip_polygons(self, polygons: Iterable[Polygon]) -> List[Polygon]:
        """Return the parts of ``polygons`` that lie outside the region
        this tree represents, splitting them where needed."""

        polygons = list(polygons)
        if self.plane is None:
            return polygons
        result: List[Polygon] = []
        stack = [(self, polygons)]
        while stack:
            node, polys = stack.pop()
            front: List[Polygon] = []
            back: List[Polygon] = []
            for poly in polys:
                node.plane.split_polygon(poly, front, back, front, back)
            for child, part in ((node.back, back), (node.front, front)):
                if not part:
                    continue
                if isinstance(child, Node):
                    stack.append((child, part))
                elif child is Region.OUTSIDE:
                    result.extend(part)
        return result

    def clip_to(self, bsp: "Node") -> None:
        """Remove every part of this tree's polygons that lies inside
        the region represented by ``bsp``."""
        for node in self._walk():
            node.polygons = bsp.clip_polygons(node.polygons)

    def all_polygons(self) -> List[Polygon]:
        return list(self.iter_polygons())

    def iter_polygons(self) -> Iterator[Polygon]:
        """lazy depth-first listing: local polygons, then front, then
        back"""
        for node in self._walk():
            yield from node.polygons

    def build(self, polygons: Iterable[Polygon]) -> None:
        """Insert ``polygons`` into the tree, splitting them as needed.
        Child nodes are created on first use."""
        stack = [(self, list(polygons))]
        while stack:
            node, polys = stack.pop()
            if not polys:
                continue
            if node.plane is None:
                node.plane = polys[0].plane
            front: List[Polygon] = []
            back: List[Polygon] = []
            for poly in polys:
                node.plane.split_polygon(poly, node.polygons, node.polygons, front, back)
            if front:
                if not isinstance(node.front, Node):
                    node.front = Node(tol=node.tol)
                stack.append((node.front, front))
            if back:
                if not isinstance(node.back, Node):
                    node.back = Node(tol=node.tol)
                stack.append((node.back, back))

    def node_count(self) -> int:
        return sum(1 for _ in self._walk())

    def depth(self) -> int:
        best = 0
        stack = [(self, 1)]
        while stack:
            node, d = stack.pop()
            best = max(best, d)
            for child in (node.front, node.back):
                if isinstance(child, Node):
                    stack.append((child, d + 1))
        return best


__all__ = ['Region', 'Node']
