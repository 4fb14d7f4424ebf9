"""
Point frame reader for VoxelNav.

Loads recorded scan frames so they can be replayed through the analyzer.
Supported formats are LAS/LAZ (via laspy), NumPy ``.npy`` and plain text
(``.xyz``, ``.txt``, ``.csv``).
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import laspy
import numpy as np

logger = logging.getLogger(__name__)

LAS_SUFFIXES = (".las", ".laz")
TEXT_SUFFIXES = (".xyz", ".txt", ".csv")
SUPPORTED_SUFFIXES = LAS_SUFFIXES + (".npy",) + TEXT_SUFFIXES


@dataclass
class PointFrame:
    """One recorded point snapshot.

    Parameters
    ----------
    xyz : np.ndarray
        (N, 3) array of world-frame coordinates (y-up) in float64.
    source_file : Path, optional
        File the frame was read from.
    up_axis : str
        Vertical axis of the source file. load_points rotates "z" files
        into the y-up frame.
    """

    xyz: np.ndarray
    source_file: Optional[Path] = None
    up_axis: str = "y"

    def __post_init__(self):
        """Validate array shape."""
        if self.xyz.ndim != 2 or self.xyz.shape[1] != 3:
            raise ValueError(f"xyz must have shape (N, 3), got {self.xyz.shape}")

    @property
    def n_points(self) -> int:
        """Return number of points in the frame."""
        return len(self.xyz)

    @property
    def bounds(self) -> Dict[str, tuple]:
        """Return min/max for each dimension."""
        if self.n_points == 0:
            return {axis: (np.nan, np.nan) for axis in "xyz"}
        return {
            axis: (float(self.xyz[:, i].min()), float(self.xyz[:, i].max()))
            for i, axis in enumerate("xyz")
        }


def z_up_to_y_up(xyz: np.ndarray) -> np.ndarray:
    """
    Convert z-up coordinates (LAS convention) to the y-up sensor frame.

    A right-handed rotation of -90° about x: ``(x, y, z) -> (x, z, -y)``.
    """
    return np.column_stack([xyz[:, 0], xyz[:, 2], -xyz[:, 1]])


def load_points(filepath: Path, up_axis: Optional[str] = None) -> PointFrame:
    """
    Load a point frame from file.

    Parameters
    ----------
    filepath : Path
        Path to a .las, .laz, .npy, .xyz, .txt or .csv file.
    up_axis : str, optional
        Vertical axis of the file, "y" or "z". Defaults to "z" for LAS/LAZ
        and "y" otherwise. z-up input is rotated into the y-up frame.

    Returns
    -------
    PointFrame

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the format is unsupported or the file cannot be parsed.
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    suffix = filepath.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(f"Unsupported point file format: {filepath}")

    if suffix in LAS_SUFFIXES:
        xyz = _read_las(filepath)
        default_up = "z"
    elif suffix == ".npy":
        xyz = _read_npy(filepath)
        default_up = "y"
    else:
        xyz = _read_text(filepath)
        default_up = "y"

    up_axis = (up_axis or default_up).lower()
    if up_axis not in ("y", "z"):
        raise ValueError(f"up_axis must be 'y' or 'z', got {up_axis!r}")
    if up_axis == "z":
        xyz = z_up_to_y_up(xyz)

    logger.info(f"Loaded {len(xyz):,} points from {filepath.name}")
    return PointFrame(
        xyz=np.ascontiguousarray(xyz, dtype=np.float64),
        source_file=filepath,
        up_axis=up_axis,
    )


def _read_las(filepath: Path) -> np.ndarray:
    try:
        las = laspy.read(filepath)
    except Exception as e:
        raise ValueError(f"Failed to read LAS file: {filepath}. Error: {e}") from e

    return np.column_stack([las.x, las.y, las.z]).astype(np.float64)


def _read_npy(filepath: Path) -> np.ndarray:
    try:
        xyz = np.load(filepath, allow_pickle=False)
    except Exception as e:
        raise ValueError(f"Failed to read NumPy file: {filepath}. Error: {e}") from e

    if xyz.ndim != 2 or xyz.shape[1] < 3:
        raise ValueError(f"Expected an (N, 3) array in {filepath}, got {xyz.shape}")
    return xyz[:, :3].astype(np.float64)


def _read_text(filepath: Path) -> np.ndarray:
    delimiter = "," if filepath.suffix.lower() == ".csv" else None
    try:
        xyz = np.loadtxt(filepath, delimiter=delimiter, usecols=(0, 1, 2), ndmin=2, comments="#")
    except Exception as e:
        raise ValueError(f"Failed to read text file: {filepath}. Error: {e}") from e

    if xyz.size == 0:
        return np.empty((0, 3), dtype=np.float64)
    return xyz.astype(np.float64)


def find_point_files(directory: Path) -> List[Path]:
    """Supported point files in a directory, sorted by name."""
    directory = Path(directory)
    files = [
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in SUPPORTED_SUFFIXES
    ]
    return sorted(files)


def get_point_file_info(filepath: Path) -> Dict[str, Any]:
    """
    Summary information about a point file.

    LAS/LAZ headers are read without loading the points.

    Parameters
    ----------
    filepath : Path
        Path to a supported point file.

    Returns
    -------
    dict
        Dictionary containing file information.
    """
    filepath = Path(filepath)

    if filepath.suffix.lower() in LAS_SUFFIXES:
        with laspy.open(filepath) as f:
            header = f.header
            return {
                "filepath": str(filepath),
                "point_count": header.point_count,
                "version": f"{header.version.major}.{header.version.minor}",
                "bounds": {
                    "x": (header.x_min, header.x_max),
                    "y": (header.y_min, header.y_max),
                    "z": (header.z_min, header.z_max),
                },
            }

    frame = load_points(filepath, up_axis="y")
    return {
        "filepath": str(filepath),
        "point_count": frame.n_points,
        "bounds": frame.bounds,
    }
