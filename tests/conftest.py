"""
Shared pytest fixtures for VoxelNav tests.

Fixtures provide synthetic point clusters with known slope and height
variation, small grids with exact arithmetic, and temporary point files.
"""

import numpy as np
import pytest
from pathlib import Path


# =============================================================================
# Point Cluster Fixtures
# =============================================================================
# All clusters below fall inside the horizontal cell (0, 0) for the default
# 0.10 m clustering pitch.

@pytest.fixture
def flat_cluster():
    """Four coplanar points on y = 0 (slope 0°, no height variation)."""
    from voxel_nav.geometry import Vector3

    return [
        Vector3(0.01, 0.0, 0.01),
        Vector3(0.05, 0.0, 0.01),
        Vector3(0.01, 0.0, 0.05),
        Vector3(0.08, 0.0, 0.08),
    ]


@pytest.fixture
def gentle_cluster():
    """Three points on a ~12° incline with 0.01 m height variation."""
    from voxel_nav.geometry import Vector3

    return [
        Vector3(0.0, 0.0, 0.0),
        Vector3(0.05, 0.01, 0.0),
        Vector3(0.02, 0.0, 0.05),
    ]


@pytest.fixture
def steep_cluster():
    """Three points whose plane is tilted ~77° from up."""
    from voxel_nav.geometry import Vector3

    return [
        Vector3(0.0, 0.0, 0.0),
        Vector3(0.01, 0.02, 0.0),
        Vector3(0.02, 0.0, 0.01),
    ]


def make_obstacle_cluster(height):
    """Flat base triangle with a fourth point raised to ``height``.

    The first three points define the plane (slope 0°), so only the height
    variation decides the label.
    """
    from voxel_nav.geometry import Vector3

    return [
        Vector3(0.0, 0.0, 0.0),
        Vector3(0.05, 0.0, 0.0),
        Vector3(0.0, 0.0, 0.05),
        Vector3(0.02, height, 0.02),
    ]


@pytest.fixture
def obstacle_cluster():
    """Factory for flat clusters with one raised point."""
    return make_obstacle_cluster


@pytest.fixture
def mixed_scene():
    """
    Three separated clusters: flat floor, low bump and a tall box.

    Returns (xyz, expected) where expected maps the horizontal cell key of
    each cluster to its TerrainType.
    """
    from voxel_nav.config import TerrainType

    floor = [
        [0.01, 0.0, 0.01],
        [0.05, 0.0, 0.01],
        [0.01, 0.0, 0.05],
        [0.08, 0.0, 0.08],
    ]
    bump = [
        [0.21, 0.0, 0.21],
        [0.25, 0.0, 0.21],
        [0.21, 0.0, 0.25],
        [0.23, 0.10, 0.23],
    ]
    box = [
        [-0.19, 0.0, -0.19],
        [-0.15, 0.0, -0.19],
        [-0.19, 0.0, -0.15],
        [-0.17, 0.30, -0.17],
    ]
    xyz = np.array(floor + bump + box, dtype=np.float64)
    expected = {
        (0, 0): TerrainType.TRAVERSABLE,
        (2, 2): TerrainType.CAUTION,
        (-2, -2): TerrainType.NON_TRAVERSABLE,
    }
    return xyz, expected


# =============================================================================
# Grid Fixtures
# =============================================================================

@pytest.fixture
def default_grid():
    """Default 20 x 10 x 20 grid with 0.05 m voxels."""
    from voxel_nav.grid import VoxelGridManager
    return VoxelGridManager()


@pytest.fixture
def unit_grid():
    """4 x 2 x 4 grid with 1 m voxels (exact index arithmetic)."""
    from voxel_nav.grid import VoxelGridManager
    return VoxelGridManager(grid_dimensions=(4, 2, 4), voxel_size=1.0)


class RecordingListener:
    """Grid listener that records every notification."""

    def __init__(self):
        self.events = []

    def voxel_created(self, index, position, terrain_type):
        self.events.append(("created", index, terrain_type))

    def voxel_removed(self, index, position):
        self.events.append(("removed", index))

    def grid_reset(self):
        self.events.append(("reset",))


@pytest.fixture
def listener():
    return RecordingListener()


# =============================================================================
# Provider Fixtures
# =============================================================================

class StaticProvider:
    """Point cloud provider returning a fixed snapshot and plane list."""

    def __init__(self, points=None, planes=()):
        self.points = points
        self.planes = list(planes)
        self.calls = 0

    def current_points(self):
        self.calls += 1
        return self.points

    def current_planes(self):
        return self.planes


@pytest.fixture
def static_provider(mixed_scene):
    xyz, _ = mixed_scene
    return StaticProvider(points=xyz)


@pytest.fixture
def make_provider():
    """Factory for providers with custom points and planes."""
    return StaticProvider


# =============================================================================
# File Fixtures
# =============================================================================

@pytest.fixture
def scene_npy(tmp_path, mixed_scene) -> Path:
    """Mixed scene saved as a y-up .npy frame."""
    xyz, _ = mixed_scene
    filepath = tmp_path / "frame.npy"
    np.save(filepath, xyz)
    return filepath


@pytest.fixture
def scene_las(tmp_path, mixed_scene) -> Path:
    """Mixed scene saved as a z-up LAS file."""
    import laspy

    xyz, _ = mixed_scene
    filepath = tmp_path / "frame.las"

    # y-up (x, y, z) -> z-up (x, -z, y)
    las = laspy.create(point_format=0, file_version="1.4")
    las.header.scales = np.array([0.001, 0.001, 0.001])
    las.header.offsets = np.array([-1.0, -1.0, -1.0])
    las.x = xyz[:, 0]
    las.y = -xyz[:, 2]
    las.z = xyz[:, 1]
    las.write(filepath)

    return filepath


@pytest.fixture
def output_dir(tmp_path) -> Path:
    """Create a temporary output directory."""
    out = tmp_path / "output"
    out.mkdir()
    return out


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
