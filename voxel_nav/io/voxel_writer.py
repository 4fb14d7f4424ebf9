"""
Voxel writer for VoxelNav.

Writes the occupied cells of a voxel grid as a LAS/LAZ point cloud of voxel
centres with the terrain label as an extra dimension.
"""

import logging
from pathlib import Path
from typing import Dict, Tuple

import laspy
import numpy as np

from voxel_nav.grid.voxel_grid import VoxelGridManager
from voxel_nav.io.point_reader import PointFrame

logger = logging.getLogger(__name__)

# Extra dimensions written with voxel output
# Format: (name, (dtype_str, description))
# Note: LAS description field is limited to 32 characters
VOXEL_EXTRA_DIMS: Dict[str, Tuple[str, str]] = {
    "terrain_class": ("u1", "Terrain class (0=T,1=C,2=N)"),
    "voxel_i": ("u2", "Voxel index i"),
    "voxel_j": ("u2", "Voxel index j"),
    "voxel_k": ("u2", "Voxel index k"),
}

DTYPE_MAP = {
    "f4": np.float32,
    "f8": np.float64,
    "u1": np.uint8,
    "u2": np.uint16,
    "u4": np.uint32,
}


def y_up_to_z_up(xyz: np.ndarray) -> np.ndarray:
    """Inverse of point_reader.z_up_to_y_up: ``(x, y, z) -> (x, -z, y)``."""
    return np.column_stack([xyz[:, 0], -xyz[:, 2], xyz[:, 1]])


def save_voxels(
    grid: VoxelGridManager,
    output_path: Path,
    compress: bool = False,
    z_up: bool = True,
) -> Path:
    """
    Save occupied voxels as a LAS/LAZ file of voxel centres.

    Parameters
    ----------
    grid : VoxelGridManager
        Grid to export.
    output_path : Path
        Output file path (.las or .laz).
    compress : bool
        If True, save as LAZ (compressed).
    z_up : bool
        If True, rotate the y-up grid frame to the z-up LAS convention.

    Returns
    -------
    Path
        Path actually written (suffix follows ``compress``).
    """
    indices, labels = grid.occupied_indices()
    centres = np.array(
        [grid.index_to_world(int(i), int(j), int(k)) for i, j, k in indices],
        dtype=np.float64,
    ).reshape(-1, 3)

    if z_up:
        centres = y_up_to_z_up(centres)

    attributes = {
        "terrain_class": labels.astype(np.uint8),
        "voxel_i": indices[:, 0].astype(np.uint16),
        "voxel_j": indices[:, 1].astype(np.uint16),
        "voxel_k": indices[:, 2].astype(np.uint16),
    }

    written = save_point_frame(
        PointFrame(xyz=centres), attributes, output_path, compress=compress,
        scale=grid.voxel_size / 100,
    )
    logger.info(f"Wrote {len(centres):,} voxels to {written}")
    return written


def save_point_frame(
    frame: PointFrame,
    attributes: Dict[str, np.ndarray],
    output_path: Path,
    compress: bool = False,
    scale: float = 0.001,
) -> Path:
    """
    Save a point frame with per-point attributes as extra dimensions.

    Parameters
    ----------
    frame : PointFrame
        Points to write, already in the file's coordinate convention.
    attributes : dict
        Dictionary mapping attribute names to numpy arrays. Keys should
        match VOXEL_EXTRA_DIMS or carry their own dtype.
    output_path : Path
        Output file path (.las or .laz).
    compress : bool
        If True, save as LAZ (compressed).
    scale : float
        Coordinate resolution stored in the LAS header.

    Returns
    -------
    Path
        Path actually written.

    Raises
    ------
    ValueError
        If attribute arrays have wrong length.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    for name, arr in attributes.items():
        if len(arr) != frame.n_points:
            raise ValueError(
                f"Attribute '{name}' has length {len(arr)}, "
                f"expected {frame.n_points}"
            )

    las = laspy.create(point_format=0, file_version="1.4")
    las.header.scales = np.array([scale, scale, scale])
    if frame.n_points > 0:
        las.header.offsets = np.floor(frame.xyz.min(axis=0))

    for name, arr in attributes.items():
        _add_extra_dimension(las, name, arr)

    las.x = frame.xyz[:, 0]
    las.y = frame.xyz[:, 1]
    las.z = frame.xyz[:, 2]

    for name, arr in attributes.items():
        las[name] = arr

    if compress and output_path.suffix.lower() != ".laz":
        output_path = output_path.with_suffix(".laz")
    elif not compress and output_path.suffix.lower() == ".laz":
        output_path = output_path.with_suffix(".las")

    las.write(output_path)
    return output_path


def _add_extra_dimension(las: laspy.LasData, name: str, arr: np.ndarray) -> None:
    """Declare an extra dimension with the dtype from VOXEL_EXTRA_DIMS."""
    if name in VOXEL_EXTRA_DIMS:
        dtype_str, description = VOXEL_EXTRA_DIMS[name]
        dtype = DTYPE_MAP[dtype_str]
    else:
        dtype = arr.dtype
        description = name[:32]

    las.add_extra_dim(
        laspy.ExtraBytesParams(name=name, type=dtype, description=description)
    )
