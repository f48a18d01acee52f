# -*- coding: utf-8 -*-
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("bspCSG")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

from bspcsg.geom import DEFAULT_TOLERANCE, Tolerance, Vector3, epsilon
from bspcsg.polygon import Plane, Polygon, Vertex
from bspcsg.bsp import Node, Region
from bspcsg.solid import CircumSphere, Solid
from bspcsg.primitives import box, cone, cube, cylinder, sphere
from bspcsg.mesh import VertexBuffer, compile_polygons

__all__ = [
    '__version__',
    'epsilon',
    'Tolerance',
    'DEFAULT_TOLERANCE',
    'Vector3',
    'Vertex',
    'Plane',
    'Polygon',
    'Node',
    'Region',
    'CircumSphere',
    'Solid',
    'box',
    'cube',
    'cylinder',
    'cone',
    'sphere',
    'VertexBuffer',
    'compile_polygons',
]
