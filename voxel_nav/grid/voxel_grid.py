"""
Voxel grid for VoxelNav.

Stores one traversability label per cell of a fixed, dense 3D grid centred on
the world origin. A dense array suits small bounded grids (tens of thousands
of cells); an unbounded domain would need a sparse map keyed by index triples.
"""

import logging
import math
import threading
from typing import Dict, Iterator, List, Optional, Protocol, Tuple

import numpy as np

from voxel_nav.config import NavConfig, TerrainType
from voxel_nav.geometry.vector import Vector3

logger = logging.getLogger(__name__)

GridIndex = Tuple[int, int, int]

# Cell value for an unoccupied voxel
EMPTY_CELL = 255


class GridListener(Protocol):
    """Receives voxel changes, e.g. a renderer mirroring the grid."""

    def voxel_created(self, index: GridIndex, position: Vector3, terrain_type: TerrainType) -> None:
        ...

    def voxel_removed(self, index: GridIndex, position: Vector3) -> None:
        ...

    def grid_reset(self) -> None:
        ...


class VoxelGridManager:
    """Dense 3D grid of optional traversability labels.

    Parameters
    ----------
    grid_dimensions : tuple of int
        Number of voxels along x, y and z.
    voxel_size : float
        Edge length of one voxel (meters).

    Attributes
    ----------
    grid_dimensions : tuple of int
        Fixed for the lifetime of the manager.
    voxel_size : float
        Fixed for the lifetime of the manager.
    cells : np.ndarray
        (Nx, Ny, Nz) uint8 array of TerrainType codes, EMPTY_CELL where
        unoccupied.
    """

    def __init__(
        self,
        grid_dimensions: Tuple[int, int, int] = (20, 10, 20),
        voxel_size: float = 0.05,
    ):
        if len(grid_dimensions) != 3:
            raise ValueError(f"grid_dimensions must have 3 entries, got {grid_dimensions}")
        if any(int(n) <= 0 for n in grid_dimensions):
            raise ValueError(f"grid_dimensions must be positive, got {grid_dimensions}")
        if voxel_size <= 0:
            raise ValueError(f"voxel_size must be positive, got {voxel_size}")

        self._grid_dimensions = tuple(int(n) for n in grid_dimensions)
        self._voxel_size = float(voxel_size)
        self._half_extent = tuple(n * self._voxel_size / 2 for n in self._grid_dimensions)

        self._lock = threading.RLock()
        self._listeners: List[GridListener] = []
        self.cells = np.full(self._grid_dimensions, EMPTY_CELL, dtype=np.uint8)
        self._count = 0

    @classmethod
    def from_config(cls, config: NavConfig) -> "VoxelGridManager":
        return cls(grid_dimensions=config.grid_dimensions, voxel_size=config.voxel_size)

    @property
    def grid_dimensions(self) -> Tuple[int, int, int]:
        return self._grid_dimensions

    @property
    def voxel_size(self) -> float:
        return self._voxel_size

    @property
    def capacity(self) -> int:
        """Total number of cells."""
        nx, ny, nz = self._grid_dimensions
        return nx * ny * nz

    @property
    def voxel_count(self) -> int:
        """Number of occupied cells."""
        return self._count

    @property
    def lock(self) -> threading.RLock:
        """Lock serializing every grid mutation."""
        return self._lock

    def add_listener(self, listener: GridListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: GridListener) -> None:
        self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Index conversion
    # ------------------------------------------------------------------

    def world_to_index(self, position: Vector3) -> GridIndex:
        """
        Convert a world position to grid indices.

        ``i = floor((x + Nx * voxel_size / 2) / voxel_size)``, likewise for
        j and k. The result is not bounds-checked. Non-finite coordinates
        map to -1 on their axis.

        Parameters
        ----------
        position : Vector3
            World-frame position.

        Returns
        -------
        tuple of int
            ``(i, j, k)``, possibly outside the grid.
        """
        scaled = [
            (float(p) + half) / self._voxel_size
            for p, half in zip(position, self._half_extent)
        ]
        return tuple(math.floor(s) if math.isfinite(s) else -1 for s in scaled)

    def index_to_world(self, i: int, j: int, k: int) -> Vector3:
        """World position of the centre of cell (i, j, k)."""
        hx, hy, hz = self._half_extent
        size = self._voxel_size
        return Vector3(
            (i + 0.5) * size - hx,
            (j + 0.5) * size - hy,
            (k + 0.5) * size - hz,
        )

    def is_valid_index(self, i: int, j: int, k: int) -> bool:
        nx, ny, nz = self._grid_dimensions
        return 0 <= i < nx and 0 <= j < ny and 0 <= k < nz

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def update_voxel(self, position: Vector3, terrain_type: TerrainType) -> None:
        """
        Set the label of the cell containing a position.

        Out-of-range positions are ignored. An empty cell gets a new voxel;
        an occupied cell with a different label has its voxel replaced; an
        occupied cell with the same label is left untouched.

        Parameters
        ----------
        position : Vector3
            World-frame position.
        terrain_type : TerrainType
            Label to store.
        """
        index = self.world_to_index(position)
        if not self.is_valid_index(*index):
            return

        terrain_type = TerrainType(terrain_type)
        with self._lock:
            current = self.cells[index]
            if current == EMPTY_CELL:
                self._create_voxel(index, terrain_type)
            elif current != terrain_type:
                self._clear_voxel(index)
                self._create_voxel(index, terrain_type)

    def remove_voxel(self, position: Vector3) -> None:
        """Clear the cell containing a position, if in range and occupied."""
        index = self.world_to_index(position)
        if not self.is_valid_index(*index):
            return

        with self._lock:
            if self.cells[index] != EMPTY_CELL:
                self._clear_voxel(index)

    def apply_classification(self, classification: Dict[Vector3, TerrainType]) -> int:
        """
        Apply a batch of point labels.

        Parameters
        ----------
        classification : dict
            Mapping from world point to label.

        Returns
        -------
        int
            Number of entries that landed inside the grid.
        """
        applied = 0
        with self._lock:
            for point, terrain_type in classification.items():
                if self.is_valid_index(*self.world_to_index(point)):
                    applied += 1
                self.update_voxel(point, terrain_type)
        return applied

    def reset(self) -> None:
        """Clear every cell. Dimensions and voxel size are unchanged."""
        with self._lock:
            self.cells.fill(EMPTY_CELL)
            self._count = 0
            for listener in self._listeners:
                listener.grid_reset()
        logger.debug("Voxel grid reset")

    def _create_voxel(self, index: GridIndex, terrain_type: TerrainType) -> None:
        self.cells[index] = terrain_type
        self._count += 1
        if self._listeners:
            position = self.index_to_world(*index)
            for listener in self._listeners:
                listener.voxel_created(index, position, terrain_type)

    def _clear_voxel(self, index: GridIndex) -> None:
        self.cells[index] = EMPTY_CELL
        self._count -= 1
        if self._listeners:
            position = self.index_to_world(*index)
            for listener in self._listeners:
                listener.voxel_removed(index, position)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_terrain_type(self, position: Vector3) -> Optional[TerrainType]:
        """Label at a position, or None if out of range or empty."""
        index = self.world_to_index(position)
        if not self.is_valid_index(*index):
            return None

        value = self.cells[index]
        if value == EMPTY_CELL:
            return None
        return TerrainType(int(value))

    def occupied_indices(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Indices and labels of all occupied cells.

        Returns
        -------
        indices : np.ndarray
            (M, 3) int64 array of ``(i, j, k)``.
        labels : np.ndarray
            (M,) uint8 array of TerrainType codes.
        """
        with self._lock:
            indices = np.argwhere(self.cells != EMPTY_CELL).astype(np.int64)
            labels = self.cells[tuple(indices.T)].copy()
        return indices, labels

    def occupied_voxels(self) -> Iterator[Tuple[Vector3, TerrainType]]:
        """Yield ``(world_position, terrain_type)`` for every occupied cell."""
        indices, labels = self.occupied_indices()
        for (i, j, k), label in zip(indices, labels):
            yield self.index_to_world(int(i), int(j), int(k)), TerrainType(int(label))

    def class_counts(self) -> Dict[TerrainType, int]:
        """Number of occupied cells per label."""
        with self._lock:
            return {terrain: int(np.sum(self.cells == terrain)) for terrain in TerrainType}
