"""Validation helpers for bspCSG solids and compiled meshes."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List

from bspcsg.geom import DEFAULT_TOLERANCE, Tolerance, Vector3
from bspcsg.mesh import VertexBuffer, VertexWelder
from bspcsg.polygon import Polygon


@dataclass
class CheckResult:
    ok: bool
    warnings: List[str]

    def __bool__(self) -> bool:
        return self.ok


def mesh_watertight(buf: VertexBuffer, tol: Tolerance = DEFAULT_TOLERANCE) -> CheckResult:
    """Check that a compiled triangle buffer is a closed manifold: after
    welding positions, every directed edge ``(a, b)`` appears exactly
    once and is matched by exactly one ``(b, a)``."""

    welder = VertexWelder(tol)
    edges: Counter = Counter()
    for tri in buf.triangles():
        idx = [welder.add(Vector3.of(p)) for p in tri]
        for k in range(3):
            a = idx[k]
            b = idx[(k + 1) % 3]
            if a != b:
                edges[(a, b)] += 1

    if not edges:
        return CheckResult(True, ['no triangles found'])

    unmatched = [e for e, count in edges.items() if edges.get((e[1], e[0]), 0) != count]
    repeated = [e for e, count in edges.items() if count > 1]

    warnings: List[str] = []
    ok = True
    if unmatched:
        ok = False
        warnings.append(f'{len(unmatched)} boundary or unmatched edges detected')
    if repeated:
        ok = False
        warnings.append(f'{len(repeated)} directed edges used more than once')
    return CheckResult(ok, warnings)


def solid_watertight(solid, tol: Tolerance = DEFAULT_TOLERANCE) -> CheckResult:
    """Compile ``solid`` with T-junction repair and check the result
    with ``mesh_watertight``."""
    return mesh_watertight(solid.compile(weld=True), tol)


def degenerate_polygons(polygons: Iterable[Polygon],
                        tol: Tolerance = DEFAULT_TOLERANCE) -> List[int]:
    """Indices of polygons whose area is zero to within the tolerance."""
    return [i for i, poly in enumerate(polygons) if poly.area() <= tol.eps * tol.eps]


def polygons_oriented(solid) -> CheckResult:
    """A closed, outward-oriented solid encloses a positive volume."""
    if solid.is_empty:
        return CheckResult(True, ['empty solid'])
    volume = solid.volume()
    if volume <= 0.0:
        return CheckResult(False, [f'non-positive enclosed volume {volume:.6g}'])
    return CheckResult(True, [])


__all__ = [
    'CheckResult',
    'mesh_watertight',
    'solid_watertight',
    'degenerate_polygons',
    'polygons_oriented',
]
