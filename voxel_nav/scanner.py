"""
Scan driver for VoxelNav.

Pulls point snapshots from a provider, classifies them and applies the labels
to a voxel grid, either once, periodically on a background thread, or for a
small region around a picked point.

Every grid mutation happens under the grid's lock, so the periodic scan, a
region scan and a reset can be triggered from different threads without
interleaving.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Optional, Protocol

import numpy as np

from voxel_nav.analyzer import TerrainAnalyzer, summarize_clusters
from voxel_nav.config import NavConfig, TerrainType
from voxel_nav.geometry.vector import Vector3
from voxel_nav.grid.voxel_grid import VoxelGridManager
from voxel_nav.planes import PlaneObservation, classify_plane, plane_footprint

logger = logging.getLogger(__name__)


class PointCloudProvider(Protocol):
    """Source of world-frame sensor data."""

    def current_points(self) -> Optional[np.ndarray]:
        """Latest (N, 3) point snapshot, or None if the sensor has no frame."""
        ...

    def current_planes(self) -> Iterable[PlaneObservation]:
        """Planes detected so far."""
        ...


@dataclass
class ScanResult:
    """Summary of one scan cycle.

    Attributes
    ----------
    n_points : int
        Points in the snapshot.
    n_labelled : int
        Points that received a label.
    n_applied : int
        Labelled points that fell inside the grid.
    n_planes : int
        Planes stamped into the grid.
    clusters : dict
        Label name → (n_clusters, n_points).
    slopes : list of float
        Slope of each classified cluster (degrees).
    voxel_count : int
        Occupied cells after the cycle.
    timing : dict
        Seconds spent per stage.
    """

    n_points: int = 0
    n_labelled: int = 0
    n_applied: int = 0
    n_planes: int = 0
    clusters: Dict = field(default_factory=dict)
    slopes: List[float] = field(default_factory=list)
    voxel_count: int = 0
    timing: Dict = field(default_factory=dict)


class ScanDriver:
    """Feeds sensor snapshots through a TerrainAnalyzer into a voxel grid.

    Parameters
    ----------
    grid : VoxelGridManager
        Grid to update. Its lock serializes all mutations.
    analyzer : TerrainAnalyzer, optional
        Classifier. Uses defaults if not provided.
    provider : PointCloudProvider, optional
        Sensor source for scan_once and periodic scanning.
    config : NavConfig, optional
        Configuration for reference normal, plane thresholds and scan settings.
        ``history_limit`` bounds ``history``; None keeps every result.
    """

    def __init__(
        self,
        grid: VoxelGridManager,
        analyzer: Optional[TerrainAnalyzer] = None,
        provider: Optional[PointCloudProvider] = None,
        config: Optional[NavConfig] = None,
    ):
        self.config = config or NavConfig()
        self.grid = grid
        self.analyzer = analyzer or TerrainAnalyzer.from_config(self.config)
        self.provider = provider
        self.reference_normal = Vector3.from_array(self.config.reference_normal)

        self._rng = np.random.default_rng(self.config.random_seed)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.history: Deque[ScanResult] = deque(maxlen=self.config.history_limit)

    @classmethod
    def from_config(
        cls,
        config: NavConfig,
        provider: Optional[PointCloudProvider] = None,
    ) -> "ScanDriver":
        return cls(VoxelGridManager.from_config(config), provider=provider, config=config)

    # ------------------------------------------------------------------
    # Single cycles
    # ------------------------------------------------------------------

    def _classify(self, points, result: ScanResult) -> Dict[Vector3, TerrainType]:
        t0 = time.time()
        records = self.analyzer.classify_clusters(points, self.reference_normal)
        classification: Dict[Vector3, TerrainType] = {}
        for cluster in records:
            for point in cluster.points:
                classification[point] = cluster.terrain_type
        result.timing["classify"] = time.time() - t0

        result.n_points = len(points)
        result.n_labelled = len(classification)
        result.clusters = summarize_clusters(records)
        result.slopes = [r.slope_deg for r in records]
        return classification

    def process_points(self, points, record: bool = True) -> ScanResult:
        """
        Classify one snapshot and apply its labels.

        Classification completes before the grid is touched; the labels are
        then applied as one batch under the grid lock.

        Parameters
        ----------
        points : sequence of Vector3 or np.ndarray
            World-frame points.
        record : bool
            Append the result to ``history``.

        Returns
        -------
        ScanResult
        """
        result = ScanResult()
        classification = self._classify(points, result)

        t0 = time.time()
        with self.grid.lock:
            result.n_applied = self.grid.apply_classification(classification)
            result.voxel_count = self.grid.voxel_count
        result.timing["apply"] = time.time() - t0

        result.timing["total"] = sum(result.timing.values())
        if record:
            self.history.append(result)
        return result

    def apply_plane(self, plane: PlaneObservation) -> TerrainType:
        """Label a plane by its tilt and stamp it across its footprint."""
        terrain_type = self._label_plane(plane)
        footprint = plane_footprint(plane, self.grid.voxel_size)

        with self.grid.lock:
            for position in footprint:
                self.grid.update_voxel(position, terrain_type)

        return terrain_type

    def _label_plane(self, plane: PlaneObservation) -> TerrainType:
        return classify_plane(plane, self.analyzer.thresholds, self.reference_normal)

    def scan_once(self) -> Optional[ScanResult]:
        """
        Run one scan cycle against the provider.

        Points and planes are read and classified first. The point labels
        and the plane footprints are then applied under one hold of the grid
        lock, so a reset or region scan from another thread lands either
        before or after the whole cycle.

        Returns
        -------
        ScanResult or None
            None if there is no provider.
        """
        if self.provider is None:
            return None

        t0 = time.time()
        result = ScanResult()
        points = self.provider.current_points()
        if points is not None and len(points) > 0:
            classification = self._classify(points, result)
        else:
            classification = {}

        planes = list(self.provider.current_planes() or [])
        stamps = [
            (self._label_plane(plane), plane_footprint(plane, self.grid.voxel_size))
            for plane in planes
        ]

        t_apply = time.time()
        with self.grid.lock:
            result.n_applied = self.grid.apply_classification(classification)
            for terrain_type, footprint in stamps:
                for position in footprint:
                    self.grid.update_voxel(position, terrain_type)
            result.voxel_count = self.grid.voxel_count
        result.timing["apply"] = time.time() - t_apply

        result.n_planes = len(planes)
        result.timing["total"] = time.time() - t0

        self.history.append(result)
        logger.debug(
            f"Scan: {result.n_points} points, {result.n_labelled} labelled, "
            f"{result.n_planes} planes, {result.voxel_count} voxels"
        )
        return result

    def analyze_region(
        self,
        center: Vector3,
        radius: Optional[float] = None,
        density: Optional[int] = None,
    ) -> ScanResult:
        """
        Micro-scan a small square around a picked point.

        Samples ``density`` points uniformly within ``[-radius, radius]`` of
        the centre in x and z, at the centre's height, plus the centre itself,
        and classifies them as one snapshot.

        Parameters
        ----------
        center : Vector3
            Picked world point.
        radius : float, optional
            Half-width of the sampled square (defaults to config).
        density : int, optional
            Number of random samples (defaults to config).

        Returns
        -------
        ScanResult
        """
        radius = self.config.region_radius if radius is None else radius
        density = self.config.region_density if density is None else density
        center = Vector3.from_array(center)

        offsets = self._rng.uniform(-radius, radius, size=(density, 2))
        points = [
            Vector3(center.x + float(dx), center.y, center.z + float(dz))
            for dx, dz in offsets
        ]
        points.append(center)

        return self.process_points(points)

    def feature_points(self, points) -> np.ndarray:
        """
        Subsample a snapshot for display.

        Parameters
        ----------
        points : sequence of Vector3 or np.ndarray
            World-frame points.

        Returns
        -------
        np.ndarray
            (M, 3) array with ``M <= max_points_to_render``, evenly strided
            over the input and keeping its order.
        """
        xyz = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        cap = self.config.max_points_to_render
        if len(xyz) <= cap:
            return xyz
        if cap <= 0:
            return xyz[:0]

        idx = np.linspace(0, len(xyz) - 1, cap).astype(np.int64)
        return xyz[idx]

    def reset(self) -> None:
        """Clear the grid and scan history."""
        self.grid.reset()
        self.history.clear()
        logger.info("Voxel grid reset")

    # ------------------------------------------------------------------
    # Periodic scanning
    # ------------------------------------------------------------------

    @property
    def is_scanning(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, interval: Optional[float] = None) -> None:
        """
        Start periodic scanning on a background thread.

        Parameters
        ----------
        interval : float, optional
            Seconds between cycles (defaults to config).
        """
        if self.provider is None:
            raise ValueError("Periodic scanning requires a point cloud provider")
        if self.is_scanning:
            return

        interval = self.config.scan_interval if interval is None else interval
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, args=(interval,), name="voxel-nav-scan", daemon=True
        )
        self._thread.start()
        logger.info(f"Scanning started (every {interval}s)")

    def stop(self) -> None:
        """Stop periodic scanning; returns once no cycle is in flight."""
        thread = self._thread
        if thread is None:
            return

        self._stop_event.set()
        if thread is not threading.current_thread():
            thread.join()
        self._thread = None
        logger.info("Scanning stopped")

    def _run(self, interval: float) -> None:
        while not self._stop_event.is_set():
            try:
                self.scan_once()
            except Exception:
                logger.exception("Scan cycle failed")
                self._stop_event.set()
                raise
            self._stop_event.wait(interval)
