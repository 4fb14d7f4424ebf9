"""Voxel grid module."""

from voxel_nav.grid.voxel_grid import (
    EMPTY_CELL,
    GridIndex,
    GridListener,
    VoxelGridManager,
)

__all__ = [
    "EMPTY_CELL",
    "GridIndex",
    "GridListener",
    "VoxelGridManager",
]
