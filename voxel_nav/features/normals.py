"""
Surface normal estimation for VoxelNav.

Estimates a cluster's surface normal from the plane through its first three
points, and orients normals toward a reference direction.
"""

from typing import Optional, Sequence

from voxel_nav.geometry.vector import Vector3


def plane_normal(points: Sequence[Vector3]) -> Optional[Vector3]:
    """
    Estimate the unit normal of the plane through the first three points.

    Parameters
    ----------
    points : sequence of Vector3
        Cluster points in encounter order.

    Returns
    -------
    Vector3 or None
        Unit normal, or None if there are fewer than three points or the
        first three are collinear or coincident.
    """
    if len(points) < 3:
        return None

    a, b, c = points[0], points[1], points[2]
    normal = (b - a).cross(c - a)

    length = normal.length()
    if length == 0:
        return None

    return normal / length


def orient_normal(normal: Vector3, reference: Vector3) -> Vector3:
    """
    Flip a normal into the hemisphere of the reference direction.

    A plane normal computed from a cross product depends on the winding order
    of its points. Orienting it against the reference makes the slope of a
    plane independent of point order.

    Parameters
    ----------
    normal : Vector3
        Normal to orient.
    reference : Vector3
        Direction considered "up".

    Returns
    -------
    Vector3
        The normal, negated if it points away from the reference.
    """
    if normal.dot(reference) < 0:
        return -normal
    return normal

