"""
Slope calculation for VoxelNav.

Calculates slope angle between surface normals and a reference ("up") vector.
"""

import math

import numpy as np

from voxel_nav.geometry.vector import Vector3, radians_to_degrees


def angle_between_vectors(v1: Vector3, v2: Vector3) -> float:
    """
    Angle between two vectors in degrees.

    The cosine is clamped to [-1, 1] before ``acos`` to absorb rounding.
    If either vector has zero length the angle is undefined and NaN is
    returned; NaN compares false against every threshold.

    Parameters
    ----------
    v1, v2 : Vector3
        Vectors to compare. Need not be unit length.

    Returns
    -------
    float
        Angle in degrees, in [0, 180], or NaN.
    """
    lengths = v1.length() * v2.length()
    if lengths == 0:
        return math.nan

    cos_angle = v1.dot(v2) / lengths
    angle = math.acos(min(max(cos_angle, -1.0), 1.0))

    return radians_to_degrees(angle)


def slope_statistics(slope_deg: np.ndarray, threshold: float = 20.0) -> dict:
    """
    Calculate summary statistics for slope angles.

    Parameters
    ----------
    slope_deg : np.ndarray
        (N,) slope angles in degrees.
    threshold : float
        Maximum traversable slope; counts above it are reported as steep.

    Returns
    -------
    stats : dict
        Dictionary with mean, std, min, max, median and steep counts.
    """
    slope_deg = np.asarray(slope_deg, dtype=np.float64)
    valid = ~np.isnan(slope_deg)
    if not np.any(valid):
        return {
            "mean": np.nan,
            "std": np.nan,
            "min": np.nan,
            "max": np.nan,
            "median": np.nan,
            "n_steep": 0,
            "pct_steep": 0.0,
        }

    valid_slopes = slope_deg[valid]
    n_steep = int(np.sum(valid_slopes > threshold))

    return {
        "mean": float(np.mean(valid_slopes)),
        "std": float(np.std(valid_slopes)),
        "min": float(np.min(valid_slopes)),
        "max": float(np.max(valid_slopes)),
        "median": float(np.median(valid_slopes)),
        "n_steep": n_steep,
        "pct_steep": 100.0 * n_steep / len(valid_slopes),
    }
