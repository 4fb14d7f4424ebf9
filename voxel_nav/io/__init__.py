"""I/O module for reading point frames and writing voxels."""

from voxel_nav.io.point_reader import (
    SUPPORTED_SUFFIXES,
    PointFrame,
    find_point_files,
    get_point_file_info,
    load_points,
    z_up_to_y_up,
)
from voxel_nav.io.voxel_writer import (
    VOXEL_EXTRA_DIMS,
    save_point_frame,
    save_voxels,
    y_up_to_z_up,
)

__all__ = [
    "PointFrame",
    "SUPPORTED_SUFFIXES",
    "load_points",
    "find_point_files",
    "get_point_file_info",
    "z_up_to_y_up",
    "save_voxels",
    "save_point_frame",
    "VOXEL_EXTRA_DIMS",
    "y_up_to_z_up",
]
