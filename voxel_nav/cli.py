"""Command-line interface for VoxelNav."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from voxel_nav import __version__


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="voxel-nav",
        description="Terrain traversability classification into a voxel grid",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Replay a single recorded frame
  voxel-nav process frame.npy -o output/

  # Replay every frame in a directory into one grid
  voxel-nav process ./frames/ -o output/ --batch

  # LAS input is z-up by default; override when it is already y-up
  voxel-nav process scan.las -o output/ --up-axis y

  # Write the default configuration for editing
  voxel-nav init-config config.yaml
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Process command
    process_parser = subparsers.add_parser(
        "process",
        help="Classify point frame(s) into a voxel grid",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    process_parser.add_argument(
        "input",
        type=Path,
        help="Input point file (.las/.laz/.npy/.xyz/.txt/.csv) or directory",
    )
    process_parser.add_argument(
        "-o", "--output",
        type=Path,
        required=True,
        help="Output directory",
    )
    process_parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Configuration YAML file",
    )
    process_parser.add_argument(
        "--batch",
        action="store_true",
        help="Replay all supported files in directory, sorted by name",
    )
    process_parser.add_argument(
        "--up-axis",
        choices=["y", "z"],
        default=None,
        help="Vertical axis of input files (default: z for LAS/LAZ, y otherwise)",
    )
    process_parser.add_argument(
        "--voxel-size",
        type=float,
        default=None,
        metavar="M",
        help="Override voxel edge length (meters)",
    )
    process_parser.add_argument(
        "--save-points",
        action="store_true",
        help="Also write each frame's points with their terrain labels",
    )
    process_parser.add_argument(
        "--no-las",
        action="store_true",
        help="Skip voxel LAS output",
    )
    process_parser.add_argument(
        "--no-report",
        action="store_true",
        help="Skip report generation",
    )
    process_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )

    # Config command
    config_parser = subparsers.add_parser(
        "init-config",
        help="Write the default configuration to a YAML file",
    )
    config_parser.add_argument(
        "path",
        type=Path,
        help="Destination YAML file",
    )
    config_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing file",
    )

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.INFO if getattr(parsed, "verbose", False) else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        if parsed.command == "process":
            return run_process(parsed)
        elif parsed.command == "init-config":
            return run_init_config(parsed)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def run_process(args) -> int:
    """Run processing command."""
    from tqdm import tqdm

    from voxel_nav.config import NavConfig, load_config
    from voxel_nav.io import (
        PointFrame,
        find_point_files,
        load_points,
        save_point_frame,
        save_voxels,
        y_up_to_z_up,
    )
    from voxel_nav.reporting import (
        calculate_all_statistics,
        generate_config_summary,
        scan_summaries,
        write_json_report,
        write_markdown_report,
    )
    from voxel_nav.scanner import ScanDriver

    # Load configuration
    if args.config:
        if not args.config.exists():
            print(f"Error: Config file not found: {args.config}", file=sys.stderr)
            return 1
        config = load_config(args.config)
        if args.verbose:
            print(f"Loaded config from {args.config}")
    else:
        config = NavConfig()

    # Apply CLI overrides
    if args.voxel_size is not None:
        config.voxel_size = args.voxel_size
    if args.up_axis is not None:
        config.up_axis = args.up_axis

    # Determine input files
    input_path = args.input
    if not input_path.exists():
        print(f"Error: Input path not found: {input_path}", file=sys.stderr)
        return 1

    if args.batch or input_path.is_dir():
        if not input_path.is_dir():
            print(f"Error: --batch requires a directory, got: {input_path}", file=sys.stderr)
            return 1
        input_files = find_point_files(input_path)
        if not input_files:
            print(f"Error: No point files found in {input_path}", file=sys.stderr)
            return 1
        if args.verbose:
            print(f"Found {len(input_files)} frames to replay")
    else:
        input_files = [input_path]

    # Up axis only overrides the per-format default when given explicitly
    up_axis = args.up_axis or (config.up_axis if args.config else None)

    # Every replayed frame goes into the report
    config.history_limit = None

    args.output.mkdir(parents=True, exist_ok=True)
    driver = ScanDriver.from_config(config)

    for filepath in tqdm(input_files, desc="Frames", disable=len(input_files) < 2):
        frame = load_points(filepath, up_axis=up_axis)
        result = driver.process_points(frame.xyz)

        if args.verbose:
            _print_frame_summary(filepath.name, frame.xyz, result, driver)

        if args.save_points:
            labels = driver.analyzer.label_points(frame.xyz, driver.reference_normal)
            # Back to the input file's own axes
            if frame.up_axis == "z":
                frame = PointFrame(y_up_to_z_up(frame.xyz), frame.source_file, "z")
            save_point_frame(
                frame,
                {"terrain_class": labels},
                args.output / f"{filepath.stem}_labelled.las",
                compress=config.compress_output,
            )

    basename = input_path.stem if input_path.is_file() else input_path.name

    if not args.no_las:
        written = save_voxels(
            driver.grid,
            args.output / f"{basename}_voxels.las",
            compress=config.compress_output,
        )
        print(f"Wrote {driver.grid.voxel_count:,} voxels to {written}")

    statistics = calculate_all_statistics(driver.grid, driver.history)

    if not args.no_report:
        source_files = [str(p) for p in input_files]
        config_summary = generate_config_summary(config)
        write_json_report(
            statistics,
            args.output / f"{basename}_report.json",
            config_summary=config_summary,
            frames=scan_summaries(driver.history),
            source_files=source_files,
        )
        write_markdown_report(
            statistics,
            args.output / f"{basename}_report.md",
            config_summary=config_summary,
            source_files=source_files,
        )

    if args.verbose:
        _print_grid_summary(statistics)

    return 0


def run_init_config(args) -> int:
    """Write the default configuration."""
    from voxel_nav.config import NavConfig, save_config

    if args.path.exists() and not args.force:
        print(f"Error: {args.path} exists (use --force to overwrite)", file=sys.stderr)
        return 1

    save_config(NavConfig(), args.path)
    print(f"Wrote default configuration to {args.path}")
    return 0


def _print_frame_summary(name, xyz, result, driver) -> None:
    """Print one frame's clustering and labelling summary."""
    from voxel_nav.config import TERRAIN_CLASS_ABBREV, TerrainType
    from voxel_nav.features import slope_statistics
    from voxel_nav.utils import count_points_per_cell

    cells = count_points_per_cell(xyz, driver.analyzer.cluster_cell_size)
    n_clusters = sum(n for n, _ in result.clusters.values())
    slopes = slope_statistics(result.slopes, driver.analyzer.thresholds.max_slope_deg)

    print(f"\n  {name}")
    print(f"    Points: {result.n_points:,}  Labelled: {result.n_labelled:,}")
    print(f"    Cells: {len(cells):,}  Classified clusters: {n_clusters:,}")
    if n_clusters:
        print(f"    Cluster slope: mean {slopes['mean']:.1f}°, "
              f"{slopes['pct_steep']:.1f}% steep")
        for terrain in TerrainType:
            count, _ = result.clusters[terrain.name]
            if count:
                print(f"      {TERRAIN_CLASS_ABBREV[terrain]} {count:6,} clusters")
    print(f"    Voxels: {result.voxel_count:,}  ({result.timing['total'] * 1000:.1f} ms)")


def _print_grid_summary(statistics) -> None:
    """Print voxel grid occupancy."""
    grid = statistics["grid"]
    print(f"\n  Grid {' x '.join(str(n) for n in grid['dimensions'])} "
          f"@ {grid['voxel_size']} m")
    print(f"    Occupied: {grid['occupied']:,} ({grid['occupancy_percent']:.2f}%)")
    for code, entry in grid["by_class"].items():
        print(f"      {entry['abbrev']:2s} {entry['name']:16s} {entry['count']:8,} "
              f"({entry['percent']:5.1f}%)")


if __name__ == "__main__":
    sys.exit(main())
