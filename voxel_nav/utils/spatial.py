"""
Spatial grouping utilities for VoxelNav.

Groups points into horizontal grid cells keyed by integer indices. Keys are
integer cell indices rather than raw float coordinates, so two points in the
same cell always land in the same group.
"""

import math
from typing import Dict, Iterable, List, Tuple

import numpy as np

from voxel_nav.geometry.vector import Vector3

CellKey = Tuple[int, int]


def cell_key(point: Vector3, cell_size: float) -> CellKey:
    """
    Horizontal grid cell containing a point.

    Parameters
    ----------
    point : Vector3
        World-frame point (y-up).
    cell_size : float
        Grid pitch in the x/z plane (meters).

    Returns
    -------
    tuple of int
        ``(floor(x / cell_size), floor(z / cell_size))``.
    """
    return (math.floor(point.x / cell_size), math.floor(point.z / cell_size))


def is_finite_point(point: Vector3) -> bool:
    """True if every coordinate is finite (no NaN or inf)."""
    return math.isfinite(point.x) and math.isfinite(point.y) and math.isfinite(point.z)


def finite_rows(xyz: np.ndarray) -> np.ndarray:
    """(N,) boolean mask of rows whose three coordinates are all finite."""
    return np.all(np.isfinite(xyz), axis=1)


def cluster_points(
    points: Iterable[Vector3],
    cell_size: float = 0.1,
) -> Dict[CellKey, List[Vector3]]:
    """
    Partition points into horizontal grid cells.

    Points keep their encounter order within each cluster. Points with a
    NaN or infinite coordinate belong to no cell and are dropped.

    Parameters
    ----------
    points : iterable of Vector3
        World-frame points.
    cell_size : float
        Grid pitch in the x/z plane (meters).

    Returns
    -------
    dict
        Mapping from cell key to the points in that cell.
    """
    if cell_size <= 0:
        raise ValueError(f"cell_size must be positive, got {cell_size}")

    clusters: Dict[CellKey, List[Vector3]] = {}
    for point in points:
        if not is_finite_point(point):
            continue
        clusters.setdefault(cell_key(point, cell_size), []).append(point)

    return clusters


def cell_keys_array(xyz: np.ndarray, cell_size: float) -> np.ndarray:
    """
    Vectorized horizontal cell keys for an (N, 3) array.

    Parameters
    ----------
    xyz : np.ndarray
        (N, 3) point coordinates (y-up).
    cell_size : float
        Grid pitch in the x/z plane (meters).

    Returns
    -------
    np.ndarray
        (N, 2) int64 array of ``(cell_x, cell_z)``. Rows must be finite;
        filter with finite_rows first.
    """
    if xyz.ndim != 2 or xyz.shape[1] != 3:
        raise ValueError(f"xyz must have shape (N, 3), got {xyz.shape}")

    return np.floor(xyz[:, [0, 2]] / cell_size).astype(np.int64)


def count_points_per_cell(xyz: np.ndarray, cell_size: float) -> Dict[CellKey, int]:
    """
    Count points per horizontal cell.

    Parameters
    ----------
    xyz : np.ndarray
        (N, 3) point coordinates (y-up).
    cell_size : float
        Grid pitch in the x/z plane (meters).

    Returns
    -------
    dict
        Mapping from cell key to point count. Non-finite rows are not
        counted.
    """
    xyz = xyz[finite_rows(xyz)] if len(xyz) else xyz
    if len(xyz) == 0:
        return {}

    keys = cell_keys_array(xyz, cell_size)
    unique, counts = np.unique(keys, axis=0, return_counts=True)
    return {(int(k[0]), int(k[1])): int(c) for k, c in zip(unique, counts)}
