"""Feature extraction module for normals, slope and height variation."""

from voxel_nav.features.normals import (
    orient_normal,
    plane_normal,
)
from voxel_nav.features.slope import (
    angle_between_vectors,
    slope_statistics,
)
from voxel_nav.features.height import (
    ObstacleSize,
    height_variation,
    identify_obstacle_size,
)

__all__ = [
    # Normals
    "plane_normal",
    "orient_normal",
    # Slope
    "angle_between_vectors",
    "slope_statistics",
    # Height
    "ObstacleSize",
    "height_variation",
    "identify_obstacle_size",
]
