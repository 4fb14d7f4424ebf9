"""Reporting module for statistics and report generation."""

from voxel_nav.reporting.statistics import (
    calculate_all_statistics,
    calculate_grid_stats,
    calculate_height_profile,
    calculate_scan_stats,
    scan_summaries,
)
from voxel_nav.reporting.report_writer import (
    generate_config_summary,
    write_json_report,
    write_markdown_report,
)

__all__ = [
    # statistics
    "calculate_all_statistics",
    "calculate_grid_stats",
    "calculate_height_profile",
    "calculate_scan_stats",
    "scan_summaries",
    # report_writer
    "generate_config_summary",
    "write_json_report",
    "write_markdown_report",
]
