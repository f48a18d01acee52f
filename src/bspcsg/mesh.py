"""Compile polygon boundaries into render-ready triangle buffers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from bspcsg.geom import DEFAULT_TOLERANCE, Tolerance, Vector3
from bspcsg.polygon import Polygon

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]
TriTuple = Tuple[Vec3, Vec3, Vec3, Vec3]

FLAT = 'flat'
SMOOTH = 'smooth'


@dataclass
class VertexBuffer:
    """Flat triangle list.  Rows ``3k``, ``3k+1`` and ``3k+2`` of
    ``positions`` and ``normals`` describe triangle ``k``, in the
    counter-clockwise order of the source polygon."""

    positions: np.ndarray
    normals: np.ndarray
    shading: str = FLAT

    @classmethod
    def empty(cls, shading: str = FLAT) -> "VertexBuffer":
        return cls(np.zeros((0, 3), dtype=np.float32),
                   np.zeros((0, 3), dtype=np.float32),
                   shading)

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])

    @property
    def triangle_count(self) -> int:
        return self.vertex_count // 3

    def interleaved(self) -> np.ndarray:
        """``(N, 6)`` array of ``x, y, z, nx, ny, nz`` rows, ready for a
        GL array buffer"""
        return np.hstack([self.positions, self.normals]).astype(np.float32)

    def bounds(self) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        if self.vertex_count == 0:
            return None
        return self.positions.min(axis=0), self.positions.max(axis=0)

    def triangles(self) -> Iterator[Tuple[np.ndarray, np.ndarray, np.ndarray]]:
        for k in range(self.triangle_count):
            yield self.positions[3 * k], self.positions[3 * k + 1], self.positions[3 * k + 2]

    def summary(self, indent: str = '\t') -> str:
        lines = [f'{type(self).__name__}',
                 f'{indent}shading {self.shading}',
                 f'{indent}triangles {self.triangle_count}',
                 f'{indent}vertices {self.vertex_count}']
        box = self.bounds()
        if box is not None:
            lo, hi = box
            lines.append(f'{indent}min [{lo[0]:.6g}, {lo[1]:.6g}, {lo[2]:.6g}]')
            lines.append(f'{indent}max [{hi[0]:.6g}, {hi[1]:.6g}, {hi[2]:.6g}]')
        return '\n'.join(lines)


class VertexWelder:
    """Map positions to canonical indices, merging any two positions
    closer than the tolerance.  Uses a uniform hash grid with cells one
    tolerance wide, so only the 27 neighbouring cells are searched."""

    def __init__(self, tol: Tolerance = DEFAULT_TOLERANCE):
        self.tol = tol
        self.points: List[Vector3] = []
        self._grid: Dict[Tuple[int, int, int], List[int]] = {}

    def _cell(self, p: Vector3) -> Tuple[int, int, int]:
        s = self.tol.eps
        return (int(np.floor(p.x / s)), int(np.floor(p.y / s)), int(np.floor(p.z / s)))

    def add(self, p: Vector3) -> int:
        cx, cy, cz = self._cell(p)
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for dz in (-1, 0, 1):
                    for idx in self._grid.get((cx + dx, cy + dy, cz + dz), ()):
                        if self.points[idx].isclose(p, self.tol):
                            return idx
        idx = len(self.points)
        self.points.append(p)
        self._grid.setdefault((cx, cy, cz), []).append(idx)
        return idx

    def array(self) -> np.ndarray:
        return np.array([p.astuple() for p in self.points], dtype=np.float64).reshape(-1, 3)


def _loop_normals(poly: Polygon, smooth: bool) -> List[Vector3]:
    if smooth:
        return [v.normal if v.normal is not None else poly.plane.normal
                for v in poly.vertices]
    return [poly.plane.normal] * len(poly)


def _fan(loop_len: int) -> Iterator[Tuple[int, int, int]]:
    """fan decomposition of a convex loop from its first vertex"""
    for i in range(1, loop_len - 1):
        yield 0, i, i + 1


def repair_tjunctions(polygons: Sequence[Polygon], tol: Tolerance = DEFAULT_TOLERANCE,
                      smooth: bool = False):
    """Weld the vertices of ``polygons`` and insert into every polygon
    edge each welded vertex lying strictly inside that edge.

    Returns ``(points, loops)`` where ``points`` is an ``(M, 3)`` array
    of welded positions and ``loops`` is a list of ``(indices, normals)``
    pairs, one per surviving polygon.  Inserted vertices stay collinear
    with the edge they split, so every loop remains convex.
    """

    welder = VertexWelder(tol)
    raw = []
    for poly in polygons:
        idx = []
        normals = []
        for v, n in zip(poly.vertices, _loop_normals(poly, smooth)):
            i = welder.add(v.pos)
            if idx and idx[-1] == i:
                continue
            idx.append(i)
            normals.append(n)
        if len(idx) > 1 and idx[0] == idx[-1]:
            idx.pop()
            normals.pop()
        if len(idx) < 3:
            logger.debug('welding collapsed a polygon to %d vertices', len(idx))
            continue
        raw.append((idx, normals))

    pts = welder.array()
    loops = []
    for idx, normals in raw:
        out_idx: List[int] = []
        out_normals: List[Vector3] = []
        count = len(idx)
        for k in range(count):
            a = idx[k]
            b = idx[(k + 1) % count]
            out_idx.append(a)
            out_normals.append(normals[k])
            pa = pts[a]
            d = pts[b] - pa
            dd = float(d.dot(d))
            if dd == 0.0:
                continue
            rel = pts - pa
            t = rel.dot(d) / dd
            perp = rel - np.outer(t, d)
            off = np.sqrt((perp * perp).sum(axis=1))
            margin = tol.eps / np.sqrt(dd)
            hits = np.nonzero((t > margin) & (t < 1.0 - margin) & (off <= tol.eps))[0]
            if len(hits) == 0:
                continue
            na = normals[k]
            nb = normals[(k + 1) % count]
            for h in sorted(hits, key=lambda i: t[i]):
                if h in (a, b):
                    continue
                out_idx.append(int(h))
                out_normals.append(na.lerp(nb, float(t[h])))
        loops.append((out_idx, out_normals))
    return pts, loops


def _fan_apex(pts: np.ndarray, idx: Sequence[int], tol: Tolerance) -> Optional[int]:
    """First loop position whose fan has no flat triangle, that is, the
    first vertex farther than the tolerance from the line of every loop
    edge it does not touch.  ``None`` if every vertex sits on such a
    line, which happens when T-junction repair put several vertices on
    the edges next to every corner."""

    loop = pts[np.asarray(idx)]
    count = len(loop)
    starts = loop
    ends = np.roll(loop, -1, axis=0)
    d = ends - starts
    lengths = np.sqrt((d * d).sum(axis=1))
    for apex in range(count):
        rel = loop[apex] - starts
        off = np.sqrt((np.cross(d, rel) ** 2).sum(axis=1))
        near = off <= tol.eps * lengths
        near[apex] = False
        near[(apex - 1) % count] = False
        if not near.any():
            return apex
    return None


def _weld_triangles(pts: np.ndarray, idx: List[int], loop_normals: List[Vector3],
                    tol: Tolerance) -> Iterator[Tuple[np.ndarray, Vector3]]:
    """corners of the triangles covering one repaired loop"""

    count = len(idx)
    apex = _fan_apex(pts, idx, tol)
    if apex is not None:
        for tri in _fan(count):
            for corner in tri:
                k = (apex + corner) % count
                yield pts[idx[k]], loop_normals[k]
        return

    ## fan from the vertex average, which lies strictly inside
    center = pts[np.asarray(idx)].mean(axis=0)
    total = Vector3()
    for n in loop_normals:
        total = total + n
    center_normal = total.normalize()
    logger.debug('fanning a %d-vertex loop from its center', count)
    for k in range(count):
        j = (k + 1) % count
        yield center, center_normal
        yield pts[idx[k]], loop_normals[k]
        yield pts[idx[j]], loop_normals[j]


def compile_polygons(polygons: Iterable[Polygon], smooth: bool = False, weld: bool = True,
                     tol: Tolerance = DEFAULT_TOLERANCE) -> VertexBuffer:
    """Triangulate convex ``polygons`` into a ``VertexBuffer``.

    Flat shading gives every triangle the polygon's plane normal; smooth
    shading uses the vertex normals where the polygon has them.

    With ``weld=True`` T-junctions are repaired first (see
    ``repair_tjunctions``) so every edge of the triangle mesh is shared
    by exactly two triangles.  Each repaired loop is fanned from a
    vertex that is not collinear with any edge it does not touch, so no
    triangle is flat.  With ``weld=False`` each polygon is fanned from
    its first vertex as it stands.
    """

    polygons = list(polygons)
    shading = SMOOTH if smooth else FLAT
    if not polygons:
        return VertexBuffer.empty(shading)

    positions: List[Sequence[float]] = []
    normals: List[Sequence[float]] = []
    if weld:
        pts, loops = repair_tjunctions(polygons, tol, smooth)
        for idx, loop_normals in loops:
            for pos, normal in _weld_triangles(pts, idx, loop_normals, tol):
                positions.append(pos)
                normals.append(normal.astuple())
    else:
        for poly in polygons:
            loop = poly.positions
            loop_normals = _loop_normals(poly, smooth)
            for tri in _fan(len(loop)):
                for corner in tri:
                    positions.append(loop[corner].astuple())
                    normals.append(loop_normals[corner].astuple())

    return VertexBuffer(np.asarray(positions, dtype=np.float32).reshape(-1, 3),
                        np.asarray(normals, dtype=np.float32).reshape(-1, 3),
                        shading)


def triangle_normal(v0: Vec3, v1: Vec3, v2: Vec3,
                    tol: Tolerance = DEFAULT_TOLERANCE) -> Optional[Vec3]:
    """Return the unit normal of a triangle or ``None`` if degenerate."""

    n = (Vector3.of(v1) - Vector3.of(v0)).cross(Vector3.of(v2) - Vector3.of(v0))
    length = n.length()
    if length <= tol.eps * tol.eps:
        return None
    return (n.x / length, n.y / length, n.z / length)


def mesh_view(obj) -> Iterator[TriTuple]:
    """Yield triangles for a solid, a vertex buffer or an iterable of
    polygons as ``(normal, v0, v1, v2)``.

    Normals are unit face normals and vertices are ``(x, y, z)`` tuples.
    Triangles with degenerate geometry (zero area) are skipped silently.
    """

    if isinstance(obj, VertexBuffer):
        buf = obj
    elif hasattr(obj, 'compile'):
        buf = obj.compile(weld=True)
    else:
        buf = compile_polygons(obj, weld=True)

    for a, b, c in buf.triangles():
        v0 = (float(a[0]), float(a[1]), float(a[2]))
        v1 = (float(b[0]), float(b[1]), float(b[2]))
        v2 = (float(c[0]), float(c[1]), float(c[2]))
        normal = triangle_normal(v0, v1, v2)
        if normal is None:
            continue
        yield normal, v0, v1, v2


__all__ = [
    'FLAT',
    'SMOOTH',
    'VertexBuffer',
    'VertexWelder',
    'repair_tjunctions',
    'compile_polygons',
    'triangle_normal',
    'mesh_view',
]
