"""Geometry module for 3D vector math."""

from voxel_nav.geometry.vector import (
    UP,
    ZERO,
    Vector3,
    as_vectors,
    degrees_to_radians,
    radians_to_degrees,
)

__all__ = [
    "Vector3",
    "UP",
    "ZERO",
    "as_vectors",
    "degrees_to_radians",
    "radians_to_degrees",
]
