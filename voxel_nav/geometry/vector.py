"""
3D vector arithmetic for VoxelNav.

Provides the immutable Vector3 value type used for world-frame points,
surface normals and plane centres throughout the package.

Equality and hashing compare the float components exactly. Two points that
should describe the same location but were reached through different
floating-point paths will not compare equal, so spatial grouping should key
on integer grid indices rather than on Vector3 values.
"""

import math
from typing import Iterable, Iterator, NamedTuple

import numpy as np


class Vector3(NamedTuple):
    """Immutable 3D vector with exact component equality.

    Parameters
    ----------
    x, y, z : float
        Components in world units (meters). The world frame is y-up.
    """

    x: float
    y: float
    z: float

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> "Vector3":
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Vector3":
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def length(self) -> float:
        """Return the Euclidean norm."""
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalized(self) -> "Vector3":
        """Return the unit vector, or self unchanged if the length is zero."""
        length = self.length()
        if length == 0:
            return self
        return self / length

    def dot(self, other: "Vector3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3") -> "Vector3":
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def distance(self, to: "Vector3") -> float:
        """Return the Euclidean distance to another point."""
        return (self - to).length()

    def as_array(self) -> np.ndarray:
        """Return the vector as a (3,) float64 array."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @classmethod
    def from_array(cls, values: Iterable[float]) -> "Vector3":
        """Build a Vector3 from any 3-element sequence or array."""
        x, y, z = (float(v) for v in values)
        return cls(x, y, z)


ZERO = Vector3(0.0, 0.0, 0.0)
UP = Vector3(0.0, 1.0, 0.0)


def degrees_to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


def radians_to_degrees(radians: float) -> float:
    return radians * 180.0 / math.pi


def as_vectors(points) -> Iterator[Vector3]:
    """
    Iterate over points as Vector3 values.

    Parameters
    ----------
    points : sequence of Vector3 or np.ndarray
        Either Vector3-like triples or an (N, 3) array.

    Yields
    ------
    Vector3
        One vector per input row.
    """
    if isinstance(points, np.ndarray):
        if points.size == 0:
            return
        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError(f"points must have shape (N, 3), got {points.shape}")
        for row in points:
            yield Vector3(float(row[0]), float(row[1]), float(row[2]))
        return

    for point in points:
        if isinstance(point, Vector3):
            yield point
        else:
            yield Vector3.from_array(point)
