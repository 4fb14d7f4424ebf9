"""Tests for voxel_nav.scanner module."""

import threading
import time

import numpy as np
import pytest


def _wait_for(predicate, timeout=5.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


def test_process_points(default_grid, mixed_scene):
    """Labels land in the grid; the box top is above the grid and skipped."""
    from voxel_nav.config import TerrainType
    from voxel_nav.geometry import Vector3
    from voxel_nav.scanner import ScanDriver

    xyz, _ = mixed_scene
    driver = ScanDriver(default_grid)
    result = driver.process_points(xyz)

    assert result.n_points == 12
    assert result.n_labelled == 12
    assert result.n_applied == 11
    assert result.voxel_count == default_grid.voxel_count > 0
    assert set(result.timing) == {"classify", "apply", "total"}
    assert result.clusters["CAUTION"] == (1, 4)
    assert len(result.slopes) == 3
    assert np.allclose(result.slopes, 0.0)
    assert list(driver.history) == [result]

    assert default_grid.get_terrain_type(Vector3(0.01, 0.0, 0.01)) == TerrainType.TRAVERSABLE
    assert default_grid.get_terrain_type(Vector3(0.23, 0.10, 0.23)) == TerrainType.CAUTION
    assert default_grid.get_terrain_type(Vector3(-0.19, 0.0, -0.19)) == TerrainType.NON_TRAVERSABLE


def test_process_points_no_record(default_grid, mixed_scene):
    from voxel_nav.scanner import ScanDriver

    xyz, _ = mixed_scene
    driver = ScanDriver(default_grid)
    driver.process_points(xyz, record=False)

    assert len(driver.history) == 0


def test_scan_once_without_provider(default_grid):
    from voxel_nav.scanner import ScanDriver

    assert ScanDriver(default_grid).scan_once() is None


def test_scan_once(default_grid, static_provider):
    from voxel_nav.scanner import ScanDriver

    driver = ScanDriver(default_grid, provider=static_provider)
    result = driver.scan_once()

    assert static_provider.calls == 1
    assert result.n_labelled == 12
    assert result.n_planes == 0
    assert list(driver.history) == [result]


def test_scan_once_empty_snapshot(default_grid, make_provider):
    """A provider with no frame yet still produces a result."""
    from voxel_nav.scanner import ScanDriver

    driver = ScanDriver(default_grid, provider=make_provider(points=None))
    result = driver.scan_once()

    assert result.n_points == 0
    assert result.voxel_count == 0
    assert len(driver.history) == 1


def test_scan_once_applies_planes(default_grid, make_provider):
    """A floor plane is stamped across its whole footprint."""
    from voxel_nav.config import TerrainType
    from voxel_nav.geometry import Vector3
    from voxel_nav.planes import PlaneObservation
    from voxel_nav.scanner import ScanDriver

    floor = PlaneObservation(
        center=Vector3(0.012, -0.11, 0.012),
        extent=(0.21, 0.21),
        normal=Vector3(0.0, 1.0, 0.0),
        identifier="floor-1",
    )
    driver = ScanDriver(default_grid, provider=make_provider(planes=[floor]))
    result = driver.scan_once()

    assert result.n_planes == 1
    assert default_grid.voxel_count == 25
    assert default_grid.class_counts()[TerrainType.TRAVERSABLE] == 25


def test_process_points_skips_non_finite(default_grid, mixed_scene):
    from voxel_nav.scanner import ScanDriver

    xyz, _ = mixed_scene
    noisy = np.vstack([xyz, [[np.nan, 0.0, 0.01], [0.01, np.inf, 0.01]]])
    result = ScanDriver(default_grid).process_points(noisy)

    assert result.n_points == 14
    assert result.n_labelled == 12
    assert result.n_applied == 11


class ResettingProvider:
    """Provider whose plane query triggers a grid reset from another thread."""

    def __init__(self, grid, points, planes):
        self.grid = grid
        self.points = points
        self.planes = planes
        self.reset_finished = False

    def current_points(self):
        return self.points

    def current_planes(self):
        worker = threading.Thread(target=self.grid.reset)
        worker.start()
        worker.join(timeout=5.0)
        self.reset_finished = not worker.is_alive()
        return self.planes


def test_scan_once_keeps_point_and_plane_labels_together(default_grid, mixed_scene):
    """A reset while planes are fetched cannot drop the cycle's point labels."""
    from voxel_nav.config import TerrainType
    from voxel_nav.geometry import Vector3
    from voxel_nav.planes import PlaneObservation
    from voxel_nav.scanner import ScanDriver

    xyz, _ = mixed_scene
    floor = PlaneObservation(
        center=Vector3(0.012, -0.11, 0.012),
        extent=(0.21, 0.21),
        normal=Vector3(0.0, 1.0, 0.0),
    )
    provider = ResettingProvider(default_grid, xyz, [floor])
    driver = ScanDriver(default_grid, provider=provider)

    result = driver.scan_once()

    assert provider.reset_finished
    assert result.n_applied == 11
    assert default_grid.get_terrain_type(Vector3(0.01, 0.0, 0.01)) == TerrainType.TRAVERSABLE
    assert default_grid.get_terrain_type(Vector3(0.012, -0.11, 0.012)) == TerrainType.TRAVERSABLE
    assert default_grid.voxel_count == result.voxel_count


class ResetOnFirstVoxel:
    """Listener that starts a reset on another thread at the first new voxel."""

    def __init__(self, grid):
        self.grid = grid
        self.events = []
        self.worker = None
        self.blocked = None

    def voxel_created(self, index, position, terrain_type):
        self.events.append("created")
        if self.worker is None:
            self.worker = threading.Thread(target=self.grid.reset)
            self.worker.start()
            self.worker.join(timeout=0.1)
            self.blocked = self.worker.is_alive()

    def voxel_removed(self, index, position):
        self.events.append("removed")

    def grid_reset(self):
        self.events.append("reset")


def test_scan_once_reset_waits_for_whole_cycle(default_grid, mixed_scene, make_provider):
    """A reset requested mid-apply runs only after the plane labels too."""
    from voxel_nav.geometry import Vector3
    from voxel_nav.planes import PlaneObservation
    from voxel_nav.scanner import ScanDriver

    xyz, _ = mixed_scene
    floor = PlaneObservation(
        center=Vector3(0.012, -0.11, 0.012),
        extent=(0.21, 0.21),
        normal=Vector3(0.0, 1.0, 0.0),
    )
    recorder = ResetOnFirstVoxel(default_grid)
    default_grid.add_listener(recorder)
    driver = ScanDriver(default_grid, provider=make_provider(points=xyz, planes=[floor]))

    result = driver.scan_once()
    recorder.worker.join(timeout=5.0)

    assert recorder.blocked
    assert result.voxel_count > 0
    assert recorder.events[-1] == "reset"
    assert recorder.events.count("reset") == 1
    assert default_grid.voxel_count == 0


def test_history_limit(default_grid, mixed_scene):
    """Only the most recent results are kept."""
    from voxel_nav.config import NavConfig
    from voxel_nav.scanner import ScanDriver

    xyz, _ = mixed_scene
    driver = ScanDriver(default_grid, config=NavConfig(history_limit=3))
    results = [driver.process_points(xyz) for _ in range(5)]

    assert list(driver.history) == results[-3:]


def test_history_unbounded(default_grid, mixed_scene):
    from voxel_nav.config import NavConfig
    from voxel_nav.scanner import ScanDriver

    xyz, _ = mixed_scene
    driver = ScanDriver(default_grid, config=NavConfig(history_limit=None))
    for _ in range(5):
        driver.process_points(xyz)

    assert len(driver.history) == 5


def test_history_limit_while_scanning(default_grid, static_provider):
    """Periodic scanning does not grow history past the limit."""
    from voxel_nav.config import NavConfig
    from voxel_nav.scanner import ScanDriver

    driver = ScanDriver(
        default_grid, provider=static_provider, config=NavConfig(history_limit=4)
    )
    driver.start(interval=0.001)
    try:
        assert _wait_for(lambda: static_provider.calls >= 10)
    finally:
        driver.stop()

    assert len(driver.history) == 4


@pytest.mark.parametrize(
    "normal, expected",
    [
        ((0.0, 1.0, 0.0), 0),
        ((0.0, 1.0, 1.0), 1),
        ((1.0, 0.0, 0.0), 2),
    ],
)
def test_apply_plane(default_grid, normal, expected):
    from voxel_nav.geometry import Vector3
    from voxel_nav.planes import PlaneObservation
    from voxel_nav.scanner import ScanDriver

    plane = PlaneObservation(
        center=Vector3(0.012, 0.012, 0.012),
        extent=(0.11, 0.11),
        normal=Vector3(*normal),
    )
    label = ScanDriver(default_grid).apply_plane(plane)

    assert int(label) == expected
    assert default_grid.voxel_count == 9
    assert default_grid.class_counts()[label] == 9


def test_analyze_region(default_grid):
    """A flat micro-scan produces traversable voxels only."""
    from voxel_nav.config import TerrainType
    from voxel_nav.geometry import Vector3
    from voxel_nav.scanner import ScanDriver

    driver = ScanDriver(default_grid)
    result = driver.analyze_region(Vector3(0.05, 0.0, 0.05), radius=0.1, density=50)

    assert result.n_points == 51
    assert default_grid.voxel_count > 0
    counts = default_grid.class_counts()
    assert counts[TerrainType.TRAVERSABLE] == default_grid.voxel_count


def test_analyze_region_reproducible():
    """Same seed, same samples, same grid."""
    from voxel_nav.config import NavConfig
    from voxel_nav.geometry import Vector3
    from voxel_nav.scanner import ScanDriver

    config = NavConfig(random_seed=7, region_density=40)
    a = ScanDriver.from_config(config)
    b = ScanDriver.from_config(config)

    for driver in (a, b):
        driver.analyze_region(Vector3(0.0, 0.0, 0.0))
        driver.analyze_region(Vector3(-0.2, 0.0, 0.1))

    np.testing.assert_array_equal(a.grid.cells, b.grid.cells)
    assert a.grid.voxel_count > 0


def test_analyze_region_uses_config_defaults(default_grid):
    from voxel_nav.config import NavConfig
    from voxel_nav.geometry import Vector3
    from voxel_nav.scanner import ScanDriver

    driver = ScanDriver(default_grid, config=NavConfig(region_density=10))
    result = driver.analyze_region(Vector3(0.0, 0.0, 0.0))

    assert result.n_points == 11


def test_reset(default_grid, mixed_scene, listener):
    from voxel_nav.scanner import ScanDriver

    xyz, _ = mixed_scene
    driver = ScanDriver(default_grid)
    driver.process_points(xyz)
    default_grid.add_listener(listener)

    driver.reset()

    assert default_grid.voxel_count == 0
    assert len(driver.history) == 0
    assert listener.events == [("reset",)]


def test_feature_points_cap():
    """Snapshots above the render cap are evenly subsampled."""
    from voxel_nav.config import NavConfig
    from voxel_nav.scanner import ScanDriver

    driver = ScanDriver.from_config(NavConfig(max_points_to_render=100))
    xyz = np.column_stack([np.arange(1000.0), np.zeros(1000), np.zeros(1000)])

    sample = driver.feature_points(xyz)

    assert sample.shape == (100, 3)
    assert sample[0, 0] == 0.0
    assert sample[-1, 0] == 999.0
    assert np.all(np.diff(sample[:, 0]) > 0)


def test_feature_points_small_snapshot(mixed_scene):
    from voxel_nav.config import NavConfig
    from voxel_nav.scanner import ScanDriver

    xyz, _ = mixed_scene
    driver = ScanDriver.from_config(NavConfig())

    np.testing.assert_array_equal(driver.feature_points(xyz), xyz)


def test_start_requires_provider(default_grid):
    from voxel_nav.scanner import ScanDriver

    with pytest.raises(ValueError):
        ScanDriver(default_grid).start()


def test_start_stop(default_grid, static_provider):
    """Periodic scanning runs until stopped and not after."""
    from voxel_nav.scanner import ScanDriver

    driver = ScanDriver(default_grid, provider=static_provider)
    driver.start(interval=0.01)
    try:
        assert driver.is_scanning
        assert _wait_for(lambda: static_provider.calls >= 3)
    finally:
        driver.stop()

    assert not driver.is_scanning
    calls = static_provider.calls
    time.sleep(0.05)
    assert static_provider.calls == calls
    assert len(driver.history) == calls


def test_start_twice_is_noop(default_grid, static_provider):
    from voxel_nav.scanner import ScanDriver

    driver = ScanDriver(default_grid, provider=static_provider)
    driver.start(interval=0.01)
    try:
        thread = driver._thread
        driver.start(interval=0.01)
        assert driver._thread is thread
    finally:
        driver.stop()


def test_stop_when_idle(default_grid):
    from voxel_nav.scanner import ScanDriver

    driver = ScanDriver(default_grid)
    driver.stop()

    assert not driver.is_scanning


def test_concurrent_region_scans_and_resets(default_grid, static_provider):
    """Ad-hoc scans and resets interleave safely with periodic scanning."""
    from voxel_nav.geometry import Vector3
    from voxel_nav.grid import EMPTY_CELL
    from voxel_nav.scanner import ScanDriver

    driver = ScanDriver(default_grid, provider=static_provider)
    driver.start(interval=0.001)
    try:
        for n in range(30):
            driver.analyze_region(Vector3(0.1, 0.0, -0.1), density=20)
            if n % 5 == 0:
                driver.reset()
    finally:
        driver.stop()

    assert default_grid.voxel_count == int(np.sum(default_grid.cells != EMPTY_CELL))
