"""
Statistics computation for VoxelNav results.

Calculates voxel grid occupancy statistics and scan history summaries.
"""

import numpy as np
from typing import Dict, List, Sequence

from voxel_nav.config import TERRAIN_CLASS_ABBREV, TERRAIN_CLASS_NAMES, TerrainType
from voxel_nav.grid.voxel_grid import VoxelGridManager
from voxel_nav.scanner import ScanResult


def calculate_grid_stats(grid: VoxelGridManager) -> Dict:
    """
    Calculate occupancy statistics for a voxel grid.

    Parameters
    ----------
    grid : VoxelGridManager
        Grid to summarize.

    Returns
    -------
    dict
        Dictionary with:
        - 'dimensions', 'voxel_size', 'capacity', 'occupied', 'occupancy_percent'
        - 'by_class': Dict mapping class code to {'count', 'percent', 'name', 'abbrev'}
    """
    counts = grid.class_counts()
    occupied = grid.voxel_count

    stats = {
        "dimensions": list(grid.grid_dimensions),
        "voxel_size": grid.voxel_size,
        "capacity": grid.capacity,
        "occupied": occupied,
        "occupancy_percent": round(100 * occupied / grid.capacity, 2),
        "by_class": {},
    }

    for terrain in TerrainType:
        count = counts[terrain]
        percent = 100 * count / occupied if occupied > 0 else 0.0
        stats["by_class"][int(terrain)] = {
            "count": count,
            "percent": round(percent, 2),
            "name": TERRAIN_CLASS_NAMES[terrain],
            "abbrev": TERRAIN_CLASS_ABBREV[terrain],
        }

    return stats


def calculate_height_profile(grid: VoxelGridManager) -> Dict:
    """
    Occupied voxel counts per grid layer (j index), bottom to top.

    Parameters
    ----------
    grid : VoxelGridManager
        Grid to summarize.

    Returns
    -------
    dict
        'layers': list of counts per j, 'lowest' and 'highest' occupied
        layer (None when the grid is empty).
    """
    indices, _ = grid.occupied_indices()
    ny = grid.grid_dimensions[1]
    layers = np.bincount(indices[:, 1], minlength=ny) if len(indices) else np.zeros(ny, dtype=np.int64)

    occupied_layers = np.nonzero(layers)[0]
    return {
        "layers": [int(n) for n in layers],
        "lowest": int(occupied_layers[0]) if len(occupied_layers) else None,
        "highest": int(occupied_layers[-1]) if len(occupied_layers) else None,
    }


def calculate_scan_stats(history: Sequence[ScanResult]) -> Dict:
    """
    Summarize a sequence of scan cycles.

    Parameters
    ----------
    history : sequence of ScanResult
        Scan results in the order they ran.

    Returns
    -------
    dict
        Totals, the labelled fraction and mean cycle time.
    """
    n_scans = len(history)
    total_points = sum(r.n_points for r in history)
    total_labelled = sum(r.n_labelled for r in history)
    total_applied = sum(r.n_applied for r in history)
    cycle_times = [r.timing["total"] for r in history if "total" in r.timing]

    return {
        "n_scans": n_scans,
        "total_points": total_points,
        "total_labelled": total_labelled,
        "total_applied": total_applied,
        "labelled_percent": round(100 * total_labelled / total_points, 2) if total_points else 0.0,
        "mean_cycle_seconds": float(np.mean(cycle_times)) if cycle_times else 0.0,
    }


def calculate_all_statistics(
    grid: VoxelGridManager,
    history: Sequence[ScanResult] = (),
) -> Dict:
    """Combine grid, height-profile and scan statistics."""
    return {
        "grid": calculate_grid_stats(grid),
        "height_profile": calculate_height_profile(grid),
        "scans": calculate_scan_stats(history),
    }


def scan_summaries(history: Sequence[ScanResult]) -> List[Dict]:
    """Per-cycle records suitable for JSON output."""
    return [
        {
            "n_points": r.n_points,
            "n_labelled": r.n_labelled,
            "n_applied": r.n_applied,
            "n_planes": r.n_planes,
            "voxel_count": r.voxel_count,
            "clusters": {name: list(v) for name, v in r.clusters.items()},
            "timing": {k: round(v, 4) for k, v in r.timing.items()},
        }
        for r in history
    ]
