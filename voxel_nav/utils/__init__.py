"""Utility module for spatial grouping."""

from voxel_nav.utils.spatial import (
    cell_key,
    cell_keys_array,
    cluster_points,
    count_points_per_cell,
    finite_rows,
    is_finite_point,
)

__all__ = [
    "cell_key",
    "cell_keys_array",
    "cluster_points",
    "count_points_per_cell",
    "finite_rows",
    "is_finite_point",
]
