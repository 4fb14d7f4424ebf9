"""
Traversability decision tree for VoxelNav.

Labels clusters from their slope angle and height variation, and labels
detected planes from their tilt.
"""

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from voxel_nav.config import NavConfig, TerrainType, TERRAIN_CLASS_NAMES


@dataclass(frozen=True)
class ClassificationThresholds:
    """Thresholds for the traversability decision tree.

    Attributes
    ----------
    max_slope_deg : float
        Clusters steeper than this are non-traversable (default 20°).
    max_small_obstacle_height : float
        Height variation strictly below this is traversable (default 0.05 m).
    min_large_obstacle_height : float
        Height variation at or above this is non-traversable (default 0.20 m).
    plane_flat_max_deg : float
        Planes tilted strictly less than this are traversable (default 20°).
    plane_wall_min_deg : float
        Planes tilted strictly more than this are non-traversable (default 70°).
    """

    max_slope_deg: float = 20.0
    max_small_obstacle_height: float = 0.05
    min_large_obstacle_height: float = 0.20
    plane_flat_max_deg: float = 20.0
    plane_wall_min_deg: float = 70.0

    @classmethod
    def from_config(cls, config: NavConfig) -> "ClassificationThresholds":
        """Create thresholds from NavConfig."""
        return cls(
            max_slope_deg=config.max_traversable_slope_deg,
            max_small_obstacle_height=config.max_small_obstacle_height,
            min_large_obstacle_height=config.min_large_obstacle_height,
            plane_flat_max_deg=config.plane_flat_max_deg,
            plane_wall_min_deg=config.plane_wall_min_deg,
        )


def classify_cluster(
    slope_deg: float,
    height_variation: float,
    thresholds: Optional[ClassificationThresholds] = None,
) -> TerrainType:
    """
    Label one cluster.

    Decision tree logic:
    ```
    if slope > 20°:
        → NonTraversable
    elif height < 0.05 m:
        → Traversable
    elif height < 0.20 m:
        → Caution       # small obstacle
    else:
        → NonTraversable  # large obstacle
    ```

    Parameters
    ----------
    slope_deg : float
        Angle between the cluster normal and the reference normal.
    height_variation : float
        Vertical span of the cluster (meters).
    thresholds : ClassificationThresholds, optional
        Classification thresholds (uses defaults if None).

    Returns
    -------
    TerrainType
    """
    if thresholds is None:
        thresholds = ClassificationThresholds()

    if slope_deg > thresholds.max_slope_deg:
        return TerrainType.NON_TRAVERSABLE

    if height_variation < thresholds.max_small_obstacle_height:
        return TerrainType.TRAVERSABLE
    if height_variation < thresholds.min_large_obstacle_height:
        return TerrainType.CAUTION
    return TerrainType.NON_TRAVERSABLE


def classify_plane_tilt(
    tilt_deg: float,
    thresholds: Optional[ClassificationThresholds] = None,
) -> TerrainType:
    """
    Label a detected plane from its tilt away from up.

    Mostly horizontal planes are floor, mostly vertical planes are walls, and
    anything between is a ramp to approach with caution.

    Parameters
    ----------
    tilt_deg : float
        Angle between the plane normal and the up vector.
    thresholds : ClassificationThresholds, optional
        Classification thresholds (uses defaults if None).

    Returns
    -------
    TerrainType
    """
    if thresholds is None:
        thresholds = ClassificationThresholds()

    if tilt_deg < thresholds.plane_flat_max_deg:
        return TerrainType.TRAVERSABLE
    if tilt_deg > thresholds.plane_wall_min_deg:
        return TerrainType.NON_TRAVERSABLE
    return TerrainType.CAUTION


def get_class_statistics(classes: np.ndarray) -> Dict:
    """
    Calculate classification statistics.

    Parameters
    ----------
    classes : np.ndarray
        (N,) array of TerrainType codes.

    Returns
    -------
    stats : dict
        Dictionary with count and percentage for each class.
    """
    classes = np.asarray(classes)
    n_total = len(classes)
    stats = {
        "total": n_total,
        "classes": {},
    }

    for terrain in TerrainType:
        count = int(np.sum(classes == terrain))
        pct = 100.0 * count / n_total if n_total > 0 else 0.0

        stats["classes"][int(terrain)] = {
            "name": TERRAIN_CLASS_NAMES[terrain],
            "count": count,
            "percentage": pct,
        }

    return stats
