"""Classification module for the traversability decision tree."""

from voxel_nav.classification.decision_tree import (
    ClassificationThresholds,
    classify_cluster,
    classify_plane_tilt,
    get_class_statistics,
)

__all__ = [
    "ClassificationThresholds",
    "classify_cluster",
    "classify_plane_tilt",
    "get_class_statistics",
]
