"""
Report writers for VoxelNav.

Writes processing results as JSON (machine readable) and Markdown (for
people).
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from voxel_nav.config import NavConfig


def generate_config_summary(config: NavConfig) -> Dict:
    """Subset of the configuration that determines the results."""
    return {
        "grid_dimensions": list(config.grid_dimensions),
        "voxel_size": config.voxel_size,
        "cluster_cell_size": config.cluster_cell_size,
        "reference_normal": list(config.reference_normal),
        "max_traversable_slope_deg": config.max_traversable_slope_deg,
        "max_small_obstacle_height": config.max_small_obstacle_height,
        "min_large_obstacle_height": config.min_large_obstacle_height,
    }


def write_json_report(
    statistics: Dict,
    output_path: Path,
    config_summary: Optional[Dict] = None,
    frames: Optional[List[Dict]] = None,
    source_files: Optional[List[str]] = None,
) -> None:
    """
    Write results as JSON.

    Parameters
    ----------
    statistics : dict
        Output of calculate_all_statistics.
    output_path : Path
        Destination file.
    config_summary : dict, optional
        Output of generate_config_summary.
    frames : list of dict, optional
        Per-frame scan summaries.
    source_files : list of str, optional
        Input files in replay order.
    """
    report = {
        "generated": datetime.now().isoformat(timespec="seconds"),
        "source_files": source_files or [],
        "config": config_summary or {},
        "statistics": statistics,
        "frames": frames or [],
    }

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(report, f, indent=2)


def write_markdown_report(
    statistics: Dict,
    output_path: Path,
    config_summary: Optional[Dict] = None,
    source_files: Optional[List[str]] = None,
) -> None:
    """
    Write results as a Markdown summary.

    Parameters
    ----------
    statistics : dict
        Output of calculate_all_statistics.
    output_path : Path
        Destination file.
    config_summary : dict, optional
        Output of generate_config_summary.
    source_files : list of str, optional
        Input files in replay order.
    """
    grid = statistics["grid"]
    scans = statistics["scans"]

    lines = [
        "# VoxelNav Terrain Report",
        "",
        f"Generated: {datetime.now().isoformat(timespec='seconds')}",
        "",
    ]

    if source_files:
        lines += ["## Input", ""]
        lines += [f"- {name}" for name in source_files]
        lines.append("")

    lines += [
        "## Grid",
        "",
        f"- Dimensions: {' x '.join(str(n) for n in grid['dimensions'])}",
        f"- Voxel size: {grid['voxel_size']} m",
        f"- Occupied: {grid['occupied']:,} of {grid['capacity']:,} "
        f"({grid['occupancy_percent']:.2f}%)",
        "",
        "| Class | Name | Voxels | Percent |",
        "|-------|------|--------|---------|",
    ]
    for code, entry in grid["by_class"].items():
        lines.append(
            f"| {entry['abbrev']} | {entry['name']} | {entry['count']:,} | {entry['percent']:.2f}% |"
        )

    lines += [
        "",
        "## Scans",
        "",
        f"- Frames: {scans['n_scans']}",
        f"- Points: {scans['total_points']:,}",
        f"- Labelled: {scans['total_labelled']:,} ({scans['labelled_percent']:.2f}%)",
        f"- Mean cycle: {scans['mean_cycle_seconds'] * 1000:.1f} ms",
    ]

    if config_summary:
        lines += ["", "## Configuration", ""]
        lines += [f"- {key}: {value}" for key, value in config_summary.items()]

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text("\n".join(lines) + "\n")
