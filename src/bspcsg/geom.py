## foundational vector arithmetic for bspCSG
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

"""foundational vector arithmetic for **bspCSG**

====================
OVERVIEW
====================

The bspcsg.geom module provides the immutable ``Vector3`` value type
used for every position, direction and normal in **bspCSG**, together
with the ``Tolerance`` configuration value that controls how points are
classified against planes.

constants
=========

``epsilon`` is the default classification tolerance of 1E-5, and
``DEFAULT_TOLERANCE`` wraps it in a ``Tolerance`` instance.  The
tolerance is never consulted as a hidden global: planes, trees, solids
and generators all take a ``tol`` argument that defaults to
``DEFAULT_TOLERANCE``.  Callers who need different precision should
rescale their geometry rather than shrink the tolerance.

vectors
=======

``Vector3`` is a frozen triple of floats.  All operations return new
vectors: ::

   a = Vector3(1, 0, 0)
   b = Vector3(0, 1, 0)
   c = a.cross(b)            # Vector3(0, 0, 1)
   d = (a + b).normalize()
   e = a.lerp(b, 0.5)

"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Sequence

## constants
epsilon = 0.00001


@dataclass(frozen=True)
class Tolerance:
    """Numeric tolerance used to classify points against planes and to
    weld nearly-coincident vertices."""

    eps: float = epsilon

    def __post_init__(self):
        if not (isinstance(self.eps, (int, float)) and self.eps > 0.0):
            raise ValueError(f'tolerance must be a positive number, got {self.eps!r}')

    def close(self, a: float, b: float) -> bool:
        """are two scalars the same within the tolerance"""
        return abs(a - b) <= self.eps


DEFAULT_TOLERANCE = Tolerance()


@dataclass(frozen=True)
class Vector3:
    """Immutable 3D vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def of(cls, value: Sequence[float]) -> "Vector3":
        """Convenience constructor from any three-element sequence (or
        an existing ``Vector3``)."""
        if isinstance(value, Vector3):
            return value
        if len(value) < 3:
            raise ValueError('vector must have three components')
        return cls(float(value[0]), float(value[1]), float(value[2]))

    def __iter__(self) -> Iterator[float]:
        return iter((self.x, self.y, self.z))

    def __getitem__(self, key):
        return (self.x, self.y, self.z)[key]

    def __len__(self):
        return 3

    def __add__(self, other: "Vector3") -> "Vector3":
        return self.add(other)

    def __sub__(self, other: "Vector3") -> "Vector3":
        return self.sub(other)

    def __mul__(self, c: float) -> "Vector3":
        return self.scale(c)

    __rmul__ = __mul__

    def __truediv__(self, c: float) -> "Vector3":
        return Vector3(self.x / c, self.y / c, self.z / c)

    def __neg__(self) -> "Vector3":
        return self.negated()

    def add(self, a: "Vector3") -> "Vector3":
        """ `self + a` """
        return Vector3(self.x + a.x, self.y + a.y, self.z + a.z)

    def sub(self, a: "Vector3") -> "Vector3":
        """ `self - a` """
        return Vector3(self.x - a.x, self.y - a.y, self.z - a.z)

    def scale(self, c: float) -> "Vector3":
        """ vector times scalar ``c`` """
        return Vector3(self.x * c, self.y * c, self.z * c)

    def negated(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def dot(self, a: "Vector3") -> float:
        return self.x * a.x + self.y * a.y + self.z * a.z

    def cross(self, a: "Vector3") -> "Vector3":
        return Vector3(self.y * a.z - self.z * a.y,
                       self.z * a.x - self.x * a.z,
                       self.x * a.y - self.y * a.x)

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalize(self) -> "Vector3":
        """Return the unit vector pointing the same way.

        Raises ``ValueError`` for a zero-length vector.
        """
        mag = self.length()
        if mag == 0.0:
            raise ValueError('cannot normalize a zero-length vector')
        return Vector3(self.x / mag, self.y / mag, self.z / mag)

    def lerp(self, a: "Vector3", t: float) -> "Vector3":
        """linear interpolation, ``t=0`` is ``self`` and ``t=1`` is ``a``"""
        return Vector3(self.x + (a.x - self.x) * t,
                       self.y + (a.y - self.y) * t,
                       self.z + (a.z - self.z) * t)

    def distance(self, a: "Vector3") -> float:
        return self.sub(a).length()

    def isclose(self, a: "Vector3", tol: Tolerance = DEFAULT_TOLERANCE) -> bool:
        """are two vectors the same point within the tolerance"""
        return self.distance(a) <= tol.eps

    def astuple(self):
        return (self.x, self.y, self.z)

    def __str__(self):
        return vstr(self)


ORIGIN = Vector3(0.0, 0.0, 0.0)

## unit axis vectors, keyed by name for the generators
AXES = {
    'x': Vector3(1.0, 0.0, 0.0),
    'y': Vector3(0.0, 1.0, 0.0),
    'z': Vector3(0.0, 0.0, 1.0),
}


def vstr(a) -> str:
    """compact, fixed-precision string form of a vector, used by the
    text dumps"""
    return '[{:.6g}, {:.6g}, {:.6g}]'.format(a[0], a[1], a[2])


def axis_frame(axis: str):
    """Return ``(u, v, w)`` unit vectors forming a right-handed frame
    whose ``w`` points along the named cardinal ``axis``."""

    if axis == 'z':
        return AXES['x'], AXES['y'], AXES['z']
    if axis == 'x':
        return AXES['y'], AXES['z'], AXES['x']
    if axis == 'y':
        return AXES['z'], AXES['x'], AXES['y']
    raise ValueError(f'axis must be one of x, y or z, got {axis!r}')


def rotate_about_axis(p: Vector3, angle: float, axis: Vector3,
                      center: Vector3 = ORIGIN) -> Vector3:
    """rotate point ``p`` by ``angle`` degrees about the line through
    ``center`` with direction ``axis`` (Rodrigues' formula)"""

    k = axis.normalize()
    theta = math.radians(angle)
    c = math.cos(theta)
    s = math.sin(theta)
    v = p - center
    rotated = v * c + k.cross(v) * s + k * (k.dot(v) * (1.0 - c))
    return rotated + center


__all__ = [
    'epsilon',
    'Tolerance',
    'DEFAULT_TOLERANCE',
    'Vector3',
    'ORIGIN',
    'AXES',
    'vstr',
    'axis_frame',
    'rotate_about_axis',
]
