"""Tests for voxel_nav.features.height module."""

import numpy as np
import pytest


def test_flat_cluster_has_no_variation(flat_cluster):
    from voxel_nav.features.height import height_variation

    assert height_variation(flat_cluster) == 0.0


def test_variation_is_vertical_span(obstacle_cluster):
    from voxel_nav.features.height import height_variation

    assert np.isclose(height_variation(obstacle_cluster(0.15)), 0.15)


def test_variation_ignores_horizontal_spread():
    from voxel_nav.features.height import height_variation
    from voxel_nav.geometry import Vector3

    points = [Vector3(-10.0, 1.0, 5.0), Vector3(10.0, 1.5, -5.0)]

    assert height_variation(points) == 0.5


def test_variation_below_ground():
    from voxel_nav.features.height import height_variation
    from voxel_nav.geometry import Vector3

    points = [Vector3(0.0, -0.3, 0.0), Vector3(0.0, -0.1, 0.0)]

    assert np.isclose(height_variation(points), 0.2)


def test_empty_points():
    from voxel_nav.features.height import height_variation

    assert height_variation([]) == 0.0


@pytest.mark.parametrize(
    "height, expected",
    [
        (0.0, "small"),
        (0.19, "small"),
        (0.20, "large"),
        (1.5, "large"),
    ],
)
def test_identify_obstacle_size(height, expected):
    """Obstacles at or above the large-obstacle height are large."""
    from voxel_nav.features.height import ObstacleSize, identify_obstacle_size

    assert identify_obstacle_size(height) == ObstacleSize(expected)


def test_identify_obstacle_size_custom_threshold():
    from voxel_nav.features.height import ObstacleSize, identify_obstacle_size

    assert identify_obstacle_size(0.1, min_large_obstacle_height=0.1) == ObstacleSize.LARGE
    assert identify_obstacle_size(0.09, min_large_obstacle_height=0.1) == ObstacleSize.SMALL
