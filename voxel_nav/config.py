"""
Configuration module for VoxelNav.

Contains the NavConfig dataclass with all processing parameters and the
terrain class definitions used for traversability labelling.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml


class TerrainType(IntEnum):
    """Traversability label assigned to a cluster, plane or voxel."""

    TRAVERSABLE = 0
    CAUTION = 1
    NON_TRAVERSABLE = 2


@dataclass
class NavConfig:
    """Configuration for terrain analysis and voxel mapping.

    Parameters
    ----------
    grid_dimensions : tuple
        Number of voxels along x, y and z. The grid is centred on the
        world origin.
    voxel_size : float
        Edge length of one voxel (meters).
    max_traversable_slope_deg : float
        Clusters whose normal deviates from the reference normal by more
        than this angle are non-traversable (degrees).
    max_small_obstacle_height : float
        Height variation below this is smooth terrain (meters).
    min_large_obstacle_height : float
        Height variation at or above this is a large obstacle (meters).
    cluster_cell_size : float
        Horizontal grid pitch used to cluster points (meters).
    reference_normal : tuple
        Direction considered "up" for slope measurement. The world frame
        is y-up.
    plane_flat_max_deg : float
        Detected planes tilted less than this from up are traversable.
    plane_wall_min_deg : float
        Detected planes tilted more than this from up are walls.
    scan_interval : float
        Seconds between periodic scan cycles.
    region_radius : float
        Half-width of the square sampled by a region micro-scan (meters).
    region_density : int
        Number of random samples drawn for a region micro-scan.
    random_seed : int
        Seed for the micro-scan sampler.
    history_limit : int, optional
        Most recent scan results kept by a ScanDriver. None keeps all.
    max_points_to_render : int
        Cap on feature points handed to a renderer.
    up_axis : str
        Vertical axis of input files: "y" (sensor frame) or "z" (LAS).
    output_dir : Path
        Default output directory.
    compress_output : bool
        Whether to compress voxel output as LAZ.
    """

    # Grid
    grid_dimensions: Tuple[int, int, int] = (20, 10, 20)
    voxel_size: float = 0.05

    # Terrain analysis
    max_traversable_slope_deg: float = 20.0
    max_small_obstacle_height: float = 0.05  # 5cm
    min_large_obstacle_height: float = 0.20  # 20cm
    cluster_cell_size: float = 0.10  # 10cm
    reference_normal: Tuple[float, float, float] = (0.0, 1.0, 0.0)

    # Plane classification
    plane_flat_max_deg: float = 20.0
    plane_wall_min_deg: float = 70.0

    # Scanning
    scan_interval: float = 0.5
    region_radius: float = 0.1
    region_density: int = 10
    random_seed: int = 0
    history_limit: Optional[int] = 1000

    # Rendering hand-off
    max_points_to_render: int = 500

    # Input / output
    up_axis: str = "y"
    output_dir: Path = field(default_factory=lambda: Path("./output"))
    compress_output: bool = False


TERRAIN_CLASS_NAMES: Dict[int, str] = {
    TerrainType.TRAVERSABLE: "Traversable",
    TerrainType.CAUTION: "Caution",
    TerrainType.NON_TRAVERSABLE: "Non-traversable",
}

TERRAIN_CLASS_ABBREV: Dict[int, str] = {
    TerrainType.TRAVERSABLE: "T",
    TerrainType.CAUTION: "C",
    TerrainType.NON_TRAVERSABLE: "N",
}

# Display colours for renderers, looked up by label
TERRAIN_CLASS_COLORS: Dict[int, str] = {
    TerrainType.TRAVERSABLE: "#00FF00",  # Green
    TerrainType.CAUTION: "#FFFF00",  # Yellow
    TerrainType.NON_TRAVERSABLE: "#FF0000",  # Red
}

TERRAIN_CLASS_ALPHA: float = 0.7


def load_config(yaml_path: Path) -> NavConfig:
    """
    Load configuration from YAML file.

    Parameters
    ----------
    yaml_path : Path
        Path to YAML configuration file.

    Returns
    -------
    NavConfig
        Configuration object with values from file.

    Raises
    ------
    FileNotFoundError
        If the YAML file does not exist.
    ValueError
        If the YAML file contains unknown keys.
    """
    yaml_path = Path(yaml_path)
    if not yaml_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

    with open(yaml_path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return NavConfig()

    config_dict = _flatten_config(data)

    known = set(NavConfig.__dataclass_fields__)
    unknown = sorted(set(config_dict) - known)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

    if "output_dir" in config_dict:
        config_dict["output_dir"] = Path(config_dict["output_dir"])

    # YAML gives lists; the dataclass stores tuples
    for key in ("grid_dimensions", "reference_normal"):
        if key in config_dict:
            config_dict[key] = tuple(config_dict[key])

    return NavConfig(**config_dict)


def save_config(config: NavConfig, yaml_path: Path) -> None:
    """
    Save configuration to YAML file.

    Parameters
    ----------
    config : NavConfig
        Configuration object to save.
    yaml_path : Path
        Path to output YAML file.
    """
    data = _unflatten_config(config)

    yaml_path = Path(yaml_path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)
    with open(yaml_path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def _flatten_config(data: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten nested YAML structure to flat config dict."""
    result = {}

    if "analysis" in data:
        analysis = data["analysis"]
        if "thresholds" in analysis:
            for key, value in analysis["thresholds"].items():
                result[key] = value
        for key, value in analysis.items():
            if key != "thresholds":
                result[key] = value

    if "planes" in data:
        # "flat_max_deg" -> "plane_flat_max_deg"
        for key, value in data["planes"].items():
            if not key.startswith("plane_"):
                result[f"plane_{key}"] = value
            else:
                result[key] = value

    for key, value in data.items():
        if key not in ["analysis", "planes"]:
            if isinstance(value, dict):
                for k, v in value.items():
                    result[k] = v
            else:
                result[key] = value

    return result


def _unflatten_config(config: NavConfig) -> Dict[str, Any]:
    """Convert flat config to nested structure for YAML output."""
    return {
        "grid": {
            "grid_dimensions": list(config.grid_dimensions),
            "voxel_size": config.voxel_size,
        },
        "analysis": {
            "cluster_cell_size": config.cluster_cell_size,
            "reference_normal": list(config.reference_normal),
            "thresholds": {
                "max_traversable_slope_deg": config.max_traversable_slope_deg,
                "max_small_obstacle_height": config.max_small_obstacle_height,
                "min_large_obstacle_height": config.min_large_obstacle_height,
            },
        },
        "planes": {
            "flat_max_deg": config.plane_flat_max_deg,
            "wall_min_deg": config.plane_wall_min_deg,
        },
        "scan": {
            "scan_interval": config.scan_interval,
            "region_radius": config.region_radius,
            "region_density": config.region_density,
            "random_seed": config.random_seed,
            "history_limit": config.history_limit,
            "max_points_to_render": config.max_points_to_render,
        },
        "output": {
            "up_axis": config.up_axis,
            "output_dir": str(config.output_dir),
            "compress_output": config.compress_output,
        },
    }
