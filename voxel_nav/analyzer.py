"""
Terrain analyzer for VoxelNav.

Turns a raw point cloud into traversability labels:
clustering → normals → slope → height variation → classification.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from voxel_nav.classification.decision_tree import (
    ClassificationThresholds,
    classify_cluster,
)
from voxel_nav.config import NavConfig, TerrainType
from voxel_nav.features.height import ObstacleSize, height_variation, identify_obstacle_size
from voxel_nav.features.normals import orient_normal, plane_normal
from voxel_nav.features.slope import angle_between_vectors
from voxel_nav.geometry.vector import UP, Vector3, as_vectors
from voxel_nav.utils.spatial import CellKey, cell_keys_array, cluster_points, finite_rows

# Code for points whose cluster could not be labelled
UNLABELED = 255


@dataclass
class ClusterClassification:
    """Outcome for one horizontal cluster.

    Attributes
    ----------
    key : tuple of int
        Horizontal cell index ``(cell_x, cell_z)``.
    points : list of Vector3
        Cluster points in encounter order.
    normal : Vector3
        Unit normal, oriented toward the reference normal.
    slope_deg : float
        Angle between the normal and the reference normal.
    height_variation : float
        Vertical span of the cluster (meters).
    terrain_type : TerrainType
        Assigned label.
    """

    key: CellKey
    points: List[Vector3]
    normal: Vector3
    slope_deg: float
    height_variation: float
    terrain_type: TerrainType


class TerrainAnalyzer:
    """Classifies point clouds into traversability labels.

    The analyzer holds only its thresholds; every call is independent.

    Parameters
    ----------
    thresholds : ClassificationThresholds, optional
        Decision thresholds. Uses defaults if not provided.
    cluster_cell_size : float
        Horizontal grid pitch used to cluster points (meters).

    Examples
    --------
    >>> analyzer = TerrainAnalyzer()
    >>> labels = analyzer.classify(points, Vector3(0, 1, 0))
    >>> print(f"Labelled {len(labels)} points")
    """

    def __init__(
        self,
        thresholds: Optional[ClassificationThresholds] = None,
        cluster_cell_size: float = 0.10,
    ):
        if cluster_cell_size <= 0:
            raise ValueError(f"cluster_cell_size must be positive, got {cluster_cell_size}")
        self.thresholds = thresholds or ClassificationThresholds()
        self.cluster_cell_size = cluster_cell_size

    @classmethod
    def from_config(cls, config: NavConfig) -> "TerrainAnalyzer":
        return cls(
            thresholds=ClassificationThresholds.from_config(config),
            cluster_cell_size=config.cluster_cell_size,
        )

    def classify(
        self,
        points,
        reference_normal: Vector3 = UP,
    ) -> Dict[Vector3, TerrainType]:
        """
        Label every point whose cluster can be classified.

        Parameters
        ----------
        points : sequence of Vector3 or np.ndarray
            World-frame points.
        reference_normal : Vector3
            Direction considered "up".

        Returns
        -------
        dict
            Mapping from point to label. Points in clusters with fewer than
            three points or a degenerate plane are absent, as are points
            with a NaN or infinite coordinate.
        """
        classification: Dict[Vector3, TerrainType] = {}

        for cluster in self.classify_clusters(points, reference_normal):
            for point in cluster.points:
                classification[point] = cluster.terrain_type

        return classification

    def classify_clusters(
        self,
        points,
        reference_normal: Vector3 = UP,
    ) -> List[ClusterClassification]:
        """
        Classify each horizontal cluster of the cloud.

        Parameters
        ----------
        points : sequence of Vector3 or np.ndarray
            World-frame points.
        reference_normal : Vector3
            Direction considered "up".

        Returns
        -------
        list of ClusterClassification
            One record per classifiable cluster, in first-encounter order.
        """
        reference_normal = Vector3.from_array(reference_normal)
        clusters = cluster_points(as_vectors(points), self.cluster_cell_size)

        results = []
        for key, cluster in clusters.items():
            normal = plane_normal(cluster)
            if normal is None:
                continue

            normal = orient_normal(normal, reference_normal)
            slope = self.angle_between_vectors(normal, reference_normal)
            variation = height_variation(cluster)

            results.append(
                ClusterClassification(
                    key=key,
                    points=cluster,
                    normal=normal,
                    slope_deg=slope,
                    height_variation=variation,
                    terrain_type=classify_cluster(slope, variation, self.thresholds),
                )
            )

        return results

    def label_points(
        self,
        xyz: np.ndarray,
        reference_normal: Vector3 = UP,
    ) -> np.ndarray:
        """
        Per-point label codes for an (N, 3) array.

        Parameters
        ----------
        xyz : np.ndarray
            (N, 3) world-frame points.
        reference_normal : Vector3
            Direction considered "up".

        Returns
        -------
        np.ndarray
            (N,) uint8 TerrainType codes, UNLABELED where the cluster was
            skipped or the point is not finite.
        """
        xyz = np.asarray(xyz, dtype=np.float64)
        labels = np.full(len(xyz), UNLABELED, dtype=np.uint8)
        if len(xyz) == 0:
            return labels

        records = self.classify_clusters(xyz, reference_normal)
        if not records:
            return labels

        code_by_key = {r.key: int(r.terrain_type) for r in records}

        finite = np.flatnonzero(finite_rows(xyz))
        keys = cell_keys_array(xyz[finite], self.cluster_cell_size)
        for i, (kx, kz) in zip(finite, keys):
            code = code_by_key.get((int(kx), int(kz)))
            if code is not None:
                labels[i] = code

        return labels

    def angle_between_vectors(self, v1: Vector3, v2: Vector3) -> float:
        """Angle between two vectors in degrees."""
        return angle_between_vectors(v1, v2)

    def identify_obstacle_size(self, height_variation: float) -> ObstacleSize:
        """Small or large obstacle, split at the large-obstacle height."""
        return identify_obstacle_size(
            height_variation, self.thresholds.min_large_obstacle_height
        )


def summarize_clusters(records: Sequence[ClusterClassification]) -> Dict[str, Tuple[int, int]]:
    """
    Count clusters and points per label.

    Parameters
    ----------
    records : sequence of ClusterClassification
        Output of TerrainAnalyzer.classify_clusters.

    Returns
    -------
    dict
        Mapping from label name to ``(n_clusters, n_points)``.
    """
    summary = {terrain.name: (0, 0) for terrain in TerrainType}
    for record in records:
        n_clusters, n_points = summary[record.terrain_type.name]
        summary[record.terrain_type.name] = (n_clusters + 1, n_points + len(record.points))
    return summary
