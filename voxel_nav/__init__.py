"""
VoxelNav: terrain traversability mapping from 3D point clouds.

Classifies sensor point clouds into traversable, caution and
non-traversable terrain and maintains the labels in a bounded voxel grid
for downstream path planning.
"""

__version__ = "0.1.0"

# Import public API
from voxel_nav.config import (
    NavConfig,
    TerrainType,
    TERRAIN_CLASS_NAMES,
    TERRAIN_CLASS_ABBREV,
    TERRAIN_CLASS_COLORS,
    load_config,
    save_config,
)
from voxel_nav.geometry import Vector3
from voxel_nav.features import ObstacleSize
from voxel_nav.analyzer import TerrainAnalyzer, ClusterClassification
from voxel_nav.grid import VoxelGridManager, GridListener
from voxel_nav.planes import PlaneObservation
from voxel_nav.scanner import ScanDriver, ScanResult, PointCloudProvider

__all__ = [
    "__version__",
    # Config
    "NavConfig",
    "TerrainType",
    "TERRAIN_CLASS_NAMES",
    "TERRAIN_CLASS_ABBREV",
    "TERRAIN_CLASS_COLORS",
    "load_config",
    "save_config",
    # Geometry
    "Vector3",
    # Analysis
    "ObstacleSize",
    "TerrainAnalyzer",
    "ClusterClassification",
    # Grid
    "VoxelGridManager",
    "GridListener",
    # Orchestration
    "PlaneObservation",
    "ScanDriver",
    "ScanResult",
    "PointCloudProvider",
]
