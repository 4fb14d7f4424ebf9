"""
Height variation features for VoxelNav.

The vertical span of a cluster is used as a proxy for obstacle height.
"""

from enum import Enum
from typing import Sequence

from voxel_nav.geometry.vector import Vector3


class ObstacleSize(Enum):
    SMALL = "small"
    LARGE = "large"


def height_variation(points: Sequence[Vector3]) -> float:
    """
    Vertical (y-axis) span of a set of points.

    Parameters
    ----------
    points : sequence of Vector3
        Cluster points.

    Returns
    -------
    float
        ``max(y) - min(y)``, or 0.0 for an empty sequence.
    """
    if not points:
        return 0.0

    min_height = points[0].y
    max_height = points[0].y
    for point in points:
        min_height = min(min_height, point.y)
        max_height = max(max_height, point.y)

    return max_height - min_height


def identify_obstacle_size(
    height_variation: float,
    min_large_obstacle_height: float = 0.20,
) -> ObstacleSize:
    """Classify an obstacle as small or large by its height (meters)."""
    if height_variation >= min_large_obstacle_height:
        return ObstacleSize.LARGE
    return ObstacleSize.SMALL
