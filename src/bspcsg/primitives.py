## primitive solid generators for bspCSG
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

"""Parametric generators for closed, outward-oriented solids.

Every generator checks its parameters before tessellating and raises
``ValueError`` for non-positive sizes or too few segments.  Each ring of
points is computed once and shared by the faces that meet there, so
neighbouring faces reference bit-identical coordinates and the result
is watertight.

Round primitives (``cylinder``, ``cone``) take an ``axis`` of ``'x'``,
``'y'`` or ``'z'``; ``center`` is the center of the base cap and the
solid extends ``height`` along the positive axis.
"""

from __future__ import annotations

import math
import numbers
from typing import List

from bspcsg.geom import DEFAULT_TOLERANCE, ORIGIN, Tolerance, Vector3, axis_frame
from bspcsg.polygon import Polygon, Vertex
from bspcsg.solid import Solid

## corner index i of a box maps to offsets (i&1, i&2, i&4); each face
## lists its corners counter-clockwise seen from outside
_BOX_FACES = [
    ([0, 4, 6, 2], Vector3(-1, 0, 0)),
    ([1, 3, 7, 5], Vector3(1, 0, 0)),
    ([0, 1, 5, 4], Vector3(0, -1, 0)),
    ([2, 6, 7, 3], Vector3(0, 1, 0)),
    ([0, 2, 3, 1], Vector3(0, 0, -1)),
    ([4, 5, 7, 6], Vector3(0, 0, 1)),
]


def box(length: float, width: float, height: float, center=ORIGIN,
        shared=None, tol: Tolerance = DEFAULT_TOLERANCE) -> Solid:
    """make a rectangular box solid of six quads, ``length`` along x,
    ``width`` along y and ``height`` along z, centered on ``center``"""

    for name, value in (('length', length), ('width', width), ('height', height)):
        _check_size(value, name, 'box', tol)
    c = Vector3.of(center)
    half = Vector3(length / 2.0, width / 2.0, height / 2.0)
    corners = []
    for i in range(8):
        corners.append(Vector3(c.x + half.x * (1 if i & 1 else -1),
                               c.y + half.y * (1 if i & 2 else -1),
                               c.z + half.z * (1 if i & 4 else -1)))
    polygons = [Polygon([Vertex(corners[i], normal) for i in idx], shared, tol)
                for idx, normal in _BOX_FACES]
    return Solid(polygons, tol)


def cube(size: float = 1.0, center=ORIGIN, shared=None,
         tol: Tolerance = DEFAULT_TOLERANCE) -> Solid:
    """make a cube with edge length ``size`` centered on ``center``"""
    _check_size(size, 'size', 'cube', tol)
    return box(size, size, size, center, shared, tol)


def _check_size(value: float, name: str, what: str, tol: Tolerance) -> None:
    if not (math.isfinite(value) and value > tol.eps):
        raise ValueError(f'bad {name} for {what}: {value!r}')


def _check_count(count: int, least: int, name: str, what: str) -> int:
    ## numpy integers are Integral, bool is not a count
    if isinstance(count, bool) or not isinstance(count, numbers.Integral) or count < least:
        raise ValueError(f'{what} needs at least {least} {name}, got {count!r}')
    return int(count)


def _frustum(base_radius: float, top_radius: float, height: float, segments: int,
             center, axis: str, shared, tol: Tolerance) -> Solid:
    u, v, w = axis_frame(axis)
    c0 = Vector3.of(center)
    c1 = c0 + w * height
    apex = top_radius <= tol.eps

    radial = []
    for i in range(segments):
        theta = 2.0 * math.pi * i / segments
        radial.append(u * math.cos(theta) + v * math.sin(theta))

    ## side normals lean toward the axis by the slope of the side
    slope = (base_radius - top_radius) / height

    def side_normal(r: Vector3) -> Vector3:
        return (r + w * slope).normalize()

    base = [c0 + r * base_radius for r in radial]
    top = [c1 + r * top_radius for r in radial]

    polygons: List[Polygon] = []
    for i in range(segments):
        j = (i + 1) % segments
        ni = side_normal(radial[i])
        nj = side_normal(radial[j])
        if apex:
            mid = side_normal((radial[i] + radial[j]).normalize())
            polygons.append(Polygon([Vertex(base[i], ni), Vertex(base[j], nj),
                                     Vertex(c1, mid)], shared, tol))
        else:
            polygons.append(Polygon([Vertex(base[i], ni), Vertex(base[j], nj),
                                     Vertex(top[j], nj), Vertex(top[i], ni)], shared, tol))

    down = w.negated()
    polygons.append(Polygon([Vertex(p, down) for p in reversed(base)], shared, tol))
    if not apex:
        polygons.append(Polygon([Vertex(p, w) for p in top], shared, tol))
    return Solid(polygons, tol)


def cylinder(radius: float, height: float, segments: int = 10, center=ORIGIN,
             axis: str = 'z', shared=None, tol: Tolerance = DEFAULT_TOLERANCE) -> Solid:
    """Make a cylinder: ``segments`` side quads and two
    ``segments``-sided caps.

    ``center`` is the center of the base cap; the cylinder extends
    ``height`` along the positive ``axis``.
    """
    _check_size(radius, 'radius', 'cylinder', tol)
    _check_size(height, 'height', 'cylinder', tol)
    segments = _check_count(segments, 3, 'segments', 'cylinder')
    return _frustum(radius, radius, height, segments, center, axis, shared, tol)


def cone(base_radius: float, top_radius: float, height: float, segments: int = 16,
         center=ORIGIN, axis: str = 'z', shared=None,
         tol: Tolerance = DEFAULT_TOLERANCE) -> Solid:
    """Make a conic frustum, or a true cone when ``top_radius`` is
    zero (to within the tolerance), in which case the sides are
    triangles meeting at the apex and there is no top cap."""
    _check_size(base_radius, 'base radius', 'cone', tol)
    if not (math.isfinite(top_radius) and top_radius >= 0):
        raise ValueError(f'bad top radius for cone: {top_radius!r}')
    _check_size(height, 'height', 'cone', tol)
    segments = _check_count(segments, 3, 'segments', 'cone')
    return _frustum(base_radius, top_radius, height, segments, center, axis, shared, tol)


def sphere(radius: float = 1.0, center=ORIGIN, slices: int = 16, stacks: int = 8,
           shared=None, tol: Tolerance = DEFAULT_TOLERANCE) -> Solid:
    """Make a UV sphere with the poles on the z axis.  The polar rings
    are triangles, every other face is a quad; vertex normals point
    radially for smooth shading."""
    _check_size(radius, 'radius', 'sphere', tol)
    slices = _check_count(slices, 3, 'slices', 'sphere')
    stacks = _check_count(stacks, 2, 'stacks', 'sphere')

    c = Vector3.of(center)
    north = Vector3(0.0, 0.0, 1.0)
    south = Vector3(0.0, 0.0, -1.0)
    rings = []
    for j in range(stacks + 1):
        if j == 0:
            rings.append([north] * slices)
            continue
        if j == stacks:
            rings.append([south] * slices)
            continue
        phi = math.pi * j / stacks
        ring = []
        for i in range(slices):
            theta = 2.0 * math.pi * i / slices
            ring.append(Vector3(math.cos(theta) * math.sin(phi),
                                math.sin(theta) * math.sin(phi),
                                math.cos(phi)))
        rings.append(ring)

    def vertex(i: int, j: int) -> Vertex:
        d = rings[j][i % slices]
        return Vertex(c + d * radius, d)

    polygons: List[Polygon] = []
    for i in range(slices):
        for j in range(stacks):
            verts = [vertex(i, j)]
            if j > 0:
                verts.append(vertex(i + 1, j))
            if j < stacks - 1:
                verts.append(vertex(i + 1, j + 1))
            verts.append(vertex(i, j + 1))
            verts.reverse()
            polygons.append(Polygon(verts, shared, tol))
    return Solid(polygons, tol)


__all__ = ['box', 'cube', 'cylinder', 'cone', 'sphere']
