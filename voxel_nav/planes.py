"""
Plane labelling for VoxelNav.

Detected planes (from the sensor session) are labelled by their tilt and
stamped into the voxel grid across their rectangular footprint.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from voxel_nav.classification.decision_tree import ClassificationThresholds, classify_plane_tilt
from voxel_nav.config import TerrainType
from voxel_nav.features.slope import angle_between_vectors
from voxel_nav.geometry.vector import UP, Vector3


@dataclass(frozen=True)
class PlaneObservation:
    """A detected plane in world coordinates.

    Attributes
    ----------
    center : Vector3
        Plane centre.
    extent : tuple of float
        Size along the plane's x and z axes (meters).
    normal : Vector3
        Plane normal.
    identifier : str, optional
        Stable id assigned by the sensor session.
    """

    center: Vector3
    extent: Tuple[float, float]
    normal: Vector3
    identifier: Optional[str] = None


def plane_tilt(plane: PlaneObservation, up: Vector3 = UP) -> float:
    """Angle between the plane normal and up, in degrees."""
    return angle_between_vectors(plane.normal, up)


def classify_plane(
    plane: PlaneObservation,
    thresholds: Optional[ClassificationThresholds] = None,
    up: Vector3 = UP,
) -> TerrainType:
    """Label a plane as floor, ramp or wall from its tilt."""
    return classify_plane_tilt(plane_tilt(plane, up), thresholds)


def plane_footprint(plane: PlaneObservation, voxel_size: float) -> List[Vector3]:
    """
    Positions covering a plane's rectangle at voxel pitch.

    ``floor(extent / voxel_size)`` steps are taken per axis, centred on the
    plane centre, at the centre's height.

    Parameters
    ----------
    plane : PlaneObservation
        Plane to cover.
    voxel_size : float
        Step between positions (meters).

    Returns
    -------
    list of Vector3
        Footprint positions, row-major over x then z.
    """
    if voxel_size <= 0:
        raise ValueError(f"voxel_size must be positive, got {voxel_size}")

    steps_x = math.floor(plane.extent[0] / voxel_size)
    steps_z = math.floor(plane.extent[1] / voxel_size)
    center = plane.center

    positions = []
    for x in range(-(steps_x // 2), steps_x // 2 + 1):
        for z in range(-(steps_z // 2), steps_z // 2 + 1):
            positions.append(
                Vector3(center.x + x * voxel_size, center.y, center.z + z * voxel_size)
            )
    return positions
